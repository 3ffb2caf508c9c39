from marketplace.app import main

main()
