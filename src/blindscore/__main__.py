from blindscore.cli import main

main()
