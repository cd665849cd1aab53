from hartopy.cli import app

app(prog_name="hartopy")
