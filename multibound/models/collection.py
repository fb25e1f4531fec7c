import msgspec


class WorkshopItem(msgspec.Struct):
    id: str
    title: str = ""


class WorkshopCollection(msgspec.Struct):
    """
    Metadata of a Workshop collection as returned by the Steam WebAPI.

    Nested collections are flattened into `items`.
    """

    id: str
    title: str = ""
    items: list[WorkshopItem] = msgspec.field(default_factory=list)

    @property
    def item_ids(self) -> list[str]:
        return [item.id for item in self.items]
