import logging
from gettext import gettext as _

import cv2

from inkpage.core.annotation import (
    PageKey,
    PersistenceError,
    ResourceNotReady,
    deserialize_or_empty,
)
from inkpage.core.annotation.utils import compute_object_statistics, render_state
from inkpage.core.store import HttpAnnotationStore

logger = logging.getLogger(__name__)


def handle(args):
    cfg = args.cfg
    store = HttpAnnotationStore(args.url or cfg.api.base_url, timeout=float(cfg.api.timeout))
    key = PageKey(args.material, args.user, args.page)

    try:
        record = store.fetch_for_page(*key)
    except PersistenceError as e:
        logger.error(_("Could not fetch annotations: {error}").format(error=e))
        return 1

    state = deserialize_or_empty(record.annotation_objects if record else None, key=key)
    logger.info(
        _("Rendering page {page}: {stats}").format(
            page=args.page, stats=compute_object_statistics(state)
        )
    )

    try:
        if args.scale is not None and args.scale != state.scale:
            state = state.rescaled(args.scale)
        image = render_state(state, args.width, args.height)
    except (ValueError, ResourceNotReady) as e:
        logger.error(_("Could not render page {page}: {error}").format(page=args.page, error=e))
        return 1
    if not cv2.imwrite(str(args.output), cv2.cvtColor(image, cv2.COLOR_RGB2BGR)):
        logger.error(_("Could not write {path}").format(path=args.output))
        return 1
    return 0
