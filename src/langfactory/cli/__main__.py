from langfactory.cli.app import app

app()
