"""QuoteTopup Use Case"""

from decimal import Decimal
from libs.result import Result, Return, Error
from src.domain import pricing
from .dtos import PriceQuoteDTO


class QuoteTopup:
    """Price a quantity without creating anything"""

    def __init__(self, unit_price: Decimal):
        self.unit_price = unit_price

    async def execute(self, quantity: int) -> Result[PriceQuoteDTO]:
        try:
            quote = pricing.calculate(quantity, self.unit_price)
        except pricing.InvalidQuantity as e:
            return Return.err(Error(code="INVALID_QUANTITY", message=str(e)))
        return Return.ok(PriceQuoteDTO.from_quote(quote))
