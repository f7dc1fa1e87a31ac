from vote_reminders.main import main

main()
