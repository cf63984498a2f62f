from typing import Annotated

from pydantic import BeforeValidator

from finledger.core.money import format_amount

# Amount as returned to callers: fixed-point string with two decimals ("160.00", "-500.00")
AmountStr = Annotated[str, BeforeValidator(format_amount)]
