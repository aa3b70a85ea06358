from fhweb.main import main

main()
