from testfleet.cli import main

main()
