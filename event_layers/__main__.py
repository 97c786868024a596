from event_layers.cli import main

main()
