from exprcalc.repl import app

app(prog_name="exprcalc")
