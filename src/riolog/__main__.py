from riolog.riolog import main

main()
