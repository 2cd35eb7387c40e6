from gettext import gettext as _

COMMAND_DESCRIPTION = _("Run the annotation API server")


def command(subparser):
    subparser.add_argument("--host", dest="host", default=None)
    subparser.add_argument("-p", "--port", dest="port", type=int, default=None)
    subparser.add_argument(
        "-m",
        "--material",
        dest="materials",
        type=int,
        nargs="+",
        default=None,
        help=_("Only accept annotations for these material ids"),
    )

    def handle(args):
        from .serve import handle as serve_handle

        return serve_handle(args)

    return handle
