from scripts.opsync.cli import main

main()
