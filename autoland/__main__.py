from autoland.cli import main

main()
