# shop/api/errors.py
from contextlib import contextmanager

from fastapi import HTTPException

from shop.domain.errors import ShopError


@contextmanager
def domain_errors():
    """Tlumaczy bledy domenowe na HTTPException (kod + status z klasy bledu)."""
    try:
        yield
    except ShopError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict()) from e
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
