import logging

from .graph import RelatedObjectGraph

logger = logging.getLogger(__name__)


def resolve_image_urls(image_ref_ids, graph: RelatedObjectGraph, expect_images: bool = False) -> list[str]:
    """
    Map image ids to URLs through the related-object graph.

    Ids missing from the graph are dropped, so the result can be shorter than
    the input. Relative order of the resolved ids is kept.
    """
    urls = []
    for image_id in image_ref_ids or ():
        image = graph.get_image(image_id)
        if image is None:
            if expect_images:
                logger.warning("Image %s not found in related objects – dropping it.", image_id)
            continue
        urls.append(image.url)
    return urls
