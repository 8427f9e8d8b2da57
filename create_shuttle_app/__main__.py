from create_shuttle_app.pipeline import main

main()
