import json
import logging
import math
import re
import threading
import uuid
from typing import Callable, Iterable, List, Optional, Tuple

from pydantic import ValidationError as SchemaValidationError

from app.schemas.product import Product, ProductPage, PAGE_SIZE_CHOICES
from app.utils.storage import KeyValueStorage, MemoryStorage

logger = logging.getLogger(__name__)

Listener = Callable[[ProductPage], None]

_NON_DIGITS = re.compile(r"[^0-9]")

# Keeps int() well below the interpreter's digit limit
MAX_PRICE_DIGITS = 18

DEMO_PRODUCTS = (
    {"name": "Notebook", "price": 25000, "in_stock": True},
    {"name": "Ballpoint pen", "price": 5000, "in_stock": True},
    {"name": "Stapler", "price": 45000, "in_stock": False},
)


class ValidationError(Exception):
    """Exception raised when a new product has an empty name or an invalid price."""
    pass


def parse_price(raw_price) -> int:
    """
    Normalize a price as typed into the form.

    Currency symbols and thousands separators are stripped, so
    ``"1.500 đ"`` becomes ``1500``. A leading minus sign is rejected.

    Raises:
        ValidationError: If no digits remain, there are too many, or the price is not positive
    """
    if isinstance(raw_price, bool):
        raise ValidationError("Price must be a positive number")

    if isinstance(raw_price, int):
        price = raw_price
    elif isinstance(raw_price, float):
        if not math.isfinite(raw_price) or not raw_price.is_integer():
            raise ValidationError("Price must be a whole number")
        price = int(raw_price)
    else:
        text = str(raw_price).strip() if raw_price is not None else ""
        if text.startswith("-"):
            raise ValidationError("Price must be greater than zero")
        digits = _NON_DIGITS.sub("", text)
        if not digits:
            raise ValidationError("Price must be a positive number")
        if len(digits) > MAX_PRICE_DIGITS:
            raise ValidationError("Price is too large")
        price = int(digits)

    if price <= 0:
        raise ValidationError("Price must be greater than zero")
    return price


class ProductStore:
    """
    In-memory product list with pagination, backed by key-value storage.

    The list is kept newest first. Every change to the list is written back
    to storage under ``storage_key``, and every change to the list or the
    page state is pushed to subscribed listeners as a fresh ``ProductPage``.

    Only ``add_product`` can fail. Toggling, deleting and paging with ids or
    page numbers that no longer match are silent no-ops, since they come
    from table rows that may have just been removed.
    """

    def __init__(
        self,
        storage: Optional[KeyValueStorage] = None,
        storage_key: str = "products",
        page_size: int = 5,
        seed: Optional[Iterable[dict]] = None,
    ):
        if page_size not in PAGE_SIZE_CHOICES:
            raise ValueError(f"Page size must be one of {PAGE_SIZE_CHOICES}, got {page_size}")

        self.storage = storage if storage is not None else MemoryStorage()
        self.storage_key = storage_key
        self._seed = list(seed) if seed else []
        self._products: List[Product] = []
        self._page = 1
        self._page_size = page_size
        self._listeners: List[Listener] = []
        self._lock = threading.RLock()

    # Read access

    @property
    def products(self) -> Tuple[Product, ...]:
        return tuple(self._products)

    @property
    def page(self) -> int:
        return self._page

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(len(self._products) / self._page_size))

    def get(self, product_id: str) -> Optional[Product]:
        index = self._index_of(product_id)
        return self._products[index] if index is not None else None

    def derived_view(self) -> ProductPage:
        """Return the rows of the current page together with the paging totals."""
        with self._lock:
            start = (self._page - 1) * self._page_size
            return ProductPage(
                items=self._products[start:start + self._page_size],
                total=len(self._products),
                page=self._page,
                page_size=self._page_size,
                total_pages=self.total_pages,
            )

    # Mutations

    def add_product(self, name: str, raw_price, in_stock: bool = True) -> Product:
        """
        Add a product to the top of the list and jump back to the first page.

        Args:
            name: Display name, surrounding whitespace is trimmed
            raw_price: Price as typed (string) or an integer
            in_stock: Initial stock flag

        Returns:
            The created product

        Raises:
            ValidationError: If the name is empty or the price is not a positive number
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Product name must not be empty")
        price = parse_price(raw_price)

        with self._lock:
            product = self._new_product(name, price, in_stock)
            self._products.insert(0, product)
            self._page = 1
            logger.info(f"Product '{product.name}' added with id {product.id}")
            self._commit()
            return product

    def toggle_stock(self, product_id: str) -> None:
        """Flip the stock flag of a product. Unknown ids are ignored."""
        self._toggle(product_id, "in_stock")

    def toggle_mark(self, product_id: str) -> None:
        """Flip the highlight flag of a product. Unknown ids are ignored."""
        self._toggle(product_id, "marked")

    def delete_product(self, product_id: str) -> None:
        """
        Remove a product. Unknown ids are ignored.

        If the current page is left empty, move back one page.
        """
        with self._lock:
            index = self._index_of(product_id)
            if index is None:
                return

            removed = self._products.pop(index)
            start = (self._page - 1) * self._page_size
            if self._page > 1 and start >= len(self._products):
                self._page -= 1
            self._clamp_page()
            logger.info(f"Product '{removed.name}' ({removed.id}) deleted")
            self._commit()

    def set_page_size(self, page_size: int) -> None:
        """
        Change the number of rows per page and go back to the first page.

        Sizes outside ``PAGE_SIZE_CHOICES`` are rejected and leave the page
        state untouched.
        """
        if page_size not in PAGE_SIZE_CHOICES:
            logger.warning(f"Ignoring page size {page_size}; allowed values are {PAGE_SIZE_CHOICES}")
            return

        with self._lock:
            self._page_size = page_size
            self._page = 1
            self._notify()

    def set_page(self, page: int) -> None:
        """Move to a page, clamped to the valid range."""
        with self._lock:
            self._page = page
            self._clamp_page()
            self._notify()

    def paginate(self, page: Optional[int] = None, page_size: Optional[int] = None) -> ProductPage:
        """
        Apply the pagination controls in one step and return the resulting view.

        A page size equal to the current one leaves the page alone, so
        clients can resend their size with every request. An unknown size is
        ignored as in ``set_page_size``.
        """
        with self._lock:
            changed = False
            if page_size is not None and page_size != self._page_size:
                if page_size in PAGE_SIZE_CHOICES:
                    self._page_size = page_size
                    self._page = 1
                    changed = True
                else:
                    logger.warning(f"Ignoring page size {page_size}; allowed values are {PAGE_SIZE_CHOICES}")
            if page is not None:
                self._page = page
                self._clamp_page()
                changed = True
            if changed:
                self._notify()
            return self.derived_view()

    # Persistence

    def load(self) -> None:
        """
        Replace the list with the one saved in storage.

        A missing entry yields the seed products (if any). Data that is not
        a JSON list yields an empty list; unreadable entries are dropped one
        by one.
        """
        with self._lock:
            raw = self.storage.get(self.storage_key)
            if raw is None:
                self._products = [
                    self._new_product(item["name"], item["price"], item.get("in_stock", True))
                    for item in self._seed
                ]
                if self._products:
                    logger.info(f"Seeded {len(self._products)} demo products")
                    self.save()
            else:
                self._products = self._deserialize(raw)

            self._page = 1
            logger.info(f"Loaded {len(self._products)} products from storage key '{self.storage_key}'")
            self._notify()

    def save(self) -> None:
        """Write the full list to storage. Failures are logged, never raised."""
        payload = json.dumps(
            [product.model_dump(by_alias=True) for product in self._products],
            ensure_ascii=False,
        )
        if not self.storage.set(self.storage_key, payload):
            logger.error(f"Product list could not be saved ({len(self._products)} items)")

    # Listeners

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a callback that receives the new view after every change.

        Returns:
            A function that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Internals

    @staticmethod
    def _new_product(name: str, price: int, in_stock: bool) -> Product:
        return Product(id=uuid.uuid4().hex, name=name, price=price, in_stock=in_stock)

    def _index_of(self, product_id: str) -> Optional[int]:
        product_id = str(product_id)
        for index, product in enumerate(self._products):
            if product.id == product_id:
                return index
        return None

    def _toggle(self, product_id: str, field: str) -> None:
        with self._lock:
            index = self._index_of(product_id)
            if index is None:
                return

            product = self._products[index]
            self._products[index] = product.model_copy(update={field: not getattr(product, field)})
            self._commit()

    def _clamp_page(self) -> None:
        self._page = min(max(1, self._page), self.total_pages)

    def _commit(self) -> None:
        self.save()
        self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        view = self.derived_view()
        for listener in list(self._listeners):
            try:
                listener(view)
            except Exception:
                # The change itself is already applied and saved
                logger.exception(f"Product listener {listener!r} failed")

    def _deserialize(self, raw: str) -> List[Product]:
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError(f"expected a list, got {type(data).__name__}")
        except ValueError as e:
            logger.warning(f"Stored product list under '{self.storage_key}' is unreadable, starting empty: {e}")
            return []

        products = []
        for position, item in enumerate(data):
            try:
                products.append(Product.model_validate(item))
            except SchemaValidationError as e:
                logger.warning(f"Dropping unreadable product entry #{position} from stored list: {e}")

        seen = set()
        unique = []
        for product in products:
            if product.id in seen:
                logger.warning(f"Dropping duplicate product id {product.id} from stored list")
                continue
            seen.add(product.id)
            unique.append(product)
        return unique
