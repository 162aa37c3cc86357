from types import SimpleNamespace

from rich.pretty import pprint

from argslots import *

options = SimpleNamespace(name="", names=[], command=None)
runtime = {"shell": True, "fancy": True}

riff = Command(name="riff", **runtime)
application = Command(name="application", aliases=["applications"], parent=riff, **runtime)


@application.command(args=positionals(namearg(options, "name")), switches=[Switch("--since", nargs=1, default="10s")], **runtime)
def tail(since):
    pprint({"name": options.name, "since": since})


@application.command(args=positionals(namesarg(options, "names")), **runtime)
def delete():
    pprint({"names": options.names})


@riff.command(args=positionals(passthrough(options, "command")), **runtime)
def run():
    pprint({"command": options.command})


if __name__ == '__main__':
    invoke(riff)
