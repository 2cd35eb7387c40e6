import logging
from gettext import gettext as _

import uvicorn

from inkpage.core.store import InMemoryAnnotationStore
from inkpage.server import create_app

logger = logging.getLogger(__name__)


def handle(args):
    cfg = args.cfg
    host = args.host or cfg.server.host
    port = args.port or int(cfg.server.port)
    materials = args.materials if args.materials is not None else cfg.server.materials
    if isinstance(materials, str):
        # INKPAGE_SERVER__MATERIALS=1,2,3
        materials = [int(m) for m in materials.split(",") if m.strip()]

    app = create_app(InMemoryAnnotationStore(materials=materials))
    logger.info(_("Serving annotations on {host}:{port}").format(host=host, port=port))
    uvicorn.run(app, host=host, port=port)
