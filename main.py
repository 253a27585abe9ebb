import logging

from rich.logging import RichHandler
from rich.pretty import pprint

from cap import *

logging.basicConfig(level=logging.DEBUG, format="%(message)s", handlers=[RichHandler(rich_tracebacks=True)])

manager = CommandManager(Settings(debug=True))

doors = manager.command(
    "bigdoors",
    virtual=True,
    header="BigDoors: doors that move.",
    add_default_help_subcommand=True,
)


def addowner(result):
    result.sender.send(f"door {result['doorID']!r}: players {result['p']}, groups {result['g']}, admin={result['a']}")


doors.command(
    "addowner",
    executor=addowner,
    summary="Adds one or more owners to a door.",
    arguments=[
        positional("doorID", required=True, summary="The door to add owners to.",
                   completion=lambda sender, partial: ["test a", "test_b"]),
        flag("a", "admin", summary="Make the new owners admins."),
        repeatable("p", "player", label="player", summary="A player to add."),
        repeatable("g", "group", summary="A group to add."),
    ],
    add_default_help_argument=True,
)

for index in range(1, 13):
    doors.command(
        f"subcommand_{index}",
        executor=lambda result: result.sender.send(f"{result.command.name}: {result['value']}"),
        summary=f"Example subcommand number {index}.",
        arguments=[positional("value", required=True, parser=parsers.integer, validator=validators.minimum(0))],
    )


if __name__ == '__main__':
    sender = DefaultSender()
    pprint(doors)

    for line in (
            'bigdoors addowner myDoor -p="pim16"aap2 -p=pim -g=group -a',
            'bigdoors addowner myD\\"oor --player=\'pim 16\'',
            "bigdoors addowner -h",
            "bigdoors help",
            "bigdoors help 2",
            "bigdoors help addowner",
            "bigdoors subcommand_3 0",
            "bigdoors addowner",
            "bigdoors addowner door -x=1",
            'bigdoors addowner "door',
    ):
        sender.send(f"> {line}")
        manager.execute(sender, line)

    for line in ("big", "bigdoors add", "bigdoors addowner ", "bigdoors addowner door --p", 'bigdoors addowner "test'):
        pprint({line: manager.get_tab_complete_options(sender, line)})
