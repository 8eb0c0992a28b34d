from cratepack.cli import main

main()
