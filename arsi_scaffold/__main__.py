from arsi_scaffold.cli import main

main()
