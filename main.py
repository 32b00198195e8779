from rich.pretty import pprint

from kitbag import *

program = Program("kitbag-demo")


@program.command()
def reverse(args):
    """Echo words, reversing them while --reverse is on"""
    pprint(args)


@reverse.parse_args()
def _(parser, args):
    parser.on("--[no-]reverse", descr="Reverse the words that follow")
    parser.on("-s", "--separator", metavar="TEXT", descr="Text printed between words")
    parser.capture_positionals("words", precapture=True)
    parser.expect_positional_cardinality(range(1, 10))

    @parser.map_positional_args
    def flip(word):
        return word[::-1] if args.get("reverse") else word


@program.command()
def status(args):
    """Show the demo status"""
    pprint({"commands": [command.name for command in program.available_commands(include="listable")]})


status.prohibit_args()


if __name__ == '__main__':
    program.main()
