from ruc.cli import main

main()
