"""Main CLI application using Cyclopts."""

import cyclopts

from mintcache.cli.commands import db, gateway, worker

app = cyclopts.App(
    name="mintcache",
    help="mintcache - token media mirror",
)

app.command(worker.run, name="run")
app.command(worker.once, name="once")
app.command(worker.forks, name="forks")
app.command(db.migrate, name="migrate")
app.command(gateway.resolve, name="resolve")
