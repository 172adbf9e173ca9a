from vctl.cli import app

app(prog_name="vctl")
