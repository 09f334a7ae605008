from enum import Enum


class CurveShape(Enum):
    LINEAR = "LINEAR"
    CONSTANT_PRODUCT = "CONSTANT_PRODUCT"

    @classmethod
    def from_str(cls, shape_str: str) -> "CurveShape":
        """
        Convert a string to a CurveShape enum.
        :param shape_str: str
        :return: CurveShape or NotImplementedError
        """
        if shape_str.upper() == CurveShape.LINEAR.name:
            return CurveShape.LINEAR
        elif shape_str.upper() == CurveShape.CONSTANT_PRODUCT.name:
            return CurveShape.CONSTANT_PRODUCT
        else:
            raise NotImplementedError(f"No curve shape enum for {shape_str}")

    @property
    def tag(self) -> int:
        """Stable one-byte tag used by the persisted layout."""
        return _SHAPE_TAGS[self]

    @classmethod
    def from_tag(cls, tag: int) -> "CurveShape":
        for shape, value in _SHAPE_TAGS.items():
            if value == tag:
                return shape
        raise ValueError(f"Unknown curve shape tag {tag}")

    def __hash__(self):
        return hash(self.value)

    def __str__(self):
        return self.name

    def __repr__(self):
        return self.__str__()


_SHAPE_TAGS = {
    CurveShape.LINEAR: 0,
    CurveShape.CONSTANT_PRODUCT: 1,
}


class OrderSide(Enum):
    BUY = "BUY"
    SELL = "SELL"

    @classmethod
    def from_str(cls, side_str):
        if side_str.upper() == OrderSide.BUY.name:
            return OrderSide.BUY
        elif side_str.upper() == OrderSide.SELL.name:
            return OrderSide.SELL
        else:
            raise NotImplementedError(f"No order side enum for {side_str}")

    def __str__(self):
        return self.name

    def __repr__(self):
        return self.__str__()
