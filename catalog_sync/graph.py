import logging
from typing import Iterable, NamedTuple, Optional

logger = logging.getLogger(__name__)

CATEGORY = 'CATEGORY'
IMAGE = 'IMAGE'


class Category(NamedTuple):
    id: str
    name: str


class Image(NamedTuple):
    id: str
    url: str


class RelatedObjectGraph:
    """
    Index over the categories and images returned alongside a catalog fetch.

    The catalog service hands back one flat list of objects discriminated by
    their ``type`` field. The graph is built once per run and answers id
    lookups for both kinds. When the same id shows up more than once (top-level
    and related objects overlap) the first occurrence wins.
    """

    def __init__(self, categories: Iterable[Category] = (), images: Iterable[Image] = ()):
        self._categories = {}
        self._images = {}
        for category in categories:
            self._categories.setdefault(category.id, category)
        for image in images:
            self._images.setdefault(image.id, image)

    @classmethod
    def from_objects(cls, objects: Iterable[dict]) -> 'RelatedObjectGraph':
        categories = []
        images = []
        for obj in objects:
            obj_type = obj.get('type')
            obj_id = obj.get('id')
            if not obj_id:
                continue
            if obj_type == CATEGORY:
                name = (obj.get('category_data') or {}).get('name')
                if name:
                    categories.append(Category(obj_id, name))
                else:
                    logger.debug("Category %s has no name – ignoring.", obj_id)
            elif obj_type == IMAGE:
                url = (obj.get('image_data') or {}).get('url')
                if url:
                    images.append(Image(obj_id, url))
                else:
                    logger.debug("Image %s has no URL – ignoring.", obj_id)
        return cls(categories, images)

    def categories(self) -> list[Category]:
        return list(self._categories.values())

    def images(self) -> list[Image]:
        return list(self._images.values())

    def get_category(self, category_id) -> Optional[Category]:
        return self._categories.get(category_id)

    def get_image(self, image_id) -> Optional[Image]:
        return self._images.get(image_id)

    def __repr__(self):
        return f"<RelatedObjectGraph categories={len(self._categories)} images={len(self._images)}>"
