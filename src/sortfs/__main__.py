from .cli import app

app(prog_name="sortfs")
