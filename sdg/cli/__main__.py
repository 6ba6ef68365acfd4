from sdg.cli.main import app

app(prog_name="sdg")
