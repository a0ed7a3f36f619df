from modbuild.cli.app import main

main()
