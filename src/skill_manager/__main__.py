from skill_manager.cli import main

main()
