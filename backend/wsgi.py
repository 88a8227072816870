from quickpos import create_app

app = create_app()
