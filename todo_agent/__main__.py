from todo_agent.cli import main

main()
