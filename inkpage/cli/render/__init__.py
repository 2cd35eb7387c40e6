from gettext import gettext as _
from pathlib import Path

COMMAND_DESCRIPTION = _("Rasterize the stored annotations of a page to an image")


def command(subparser):
    subparser.add_argument("material", type=int)
    subparser.add_argument("page", type=int)
    subparser.add_argument("output", type=Path)
    subparser.add_argument("-u", "--user", dest="user", type=int, required=True)
    subparser.add_argument("-W", "--width", dest="width", type=int, required=True)
    subparser.add_argument("-H", "--height", dest="height", type=int, required=True)
    subparser.add_argument(
        "-s",
        "--scale",
        dest="scale",
        type=float,
        default=None,
        help=_("Render scale of the output; defaults to the stored scale"),
    )
    subparser.add_argument(
        "--url", dest="url", default=None, help=_("Annotation server root URL")
    )

    def handle(args):
        from .render import handle as render_handle

        return render_handle(args)

    return handle
