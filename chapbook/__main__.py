from chapbook.cli import app

app()
