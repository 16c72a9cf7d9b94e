"""
Reads and writes product records, galleries included.

The gateway stores a gallery exactly as it is handed over; keeping the
single-primary rule is up to the gallery operations that built it.
"""
import logging

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction

from .exceptions import PersistenceError, ProductNotFound
from .models import Product

logger = logging.getLogger(__name__)


class CatalogGateway:
    model = Product

    def save(self, product):
        try:
            with transaction.atomic():
                product.save()
        except DatabaseError as exc:
            logger.error("Saving product %s failed: %s", product.pk, exc)
            raise PersistenceError(str(exc)) from exc
        return product

    def load(self, product_id):
        try:
            return self.model.objects.get(id=product_id)
        except (self.model.DoesNotExist, ValidationError, ValueError) as exc:
            raise ProductNotFound(f"Product {product_id} not found") from exc
        except DatabaseError as exc:
            raise PersistenceError(str(exc)) from exc

    def list(self, is_active=None, category=None):
        products = self.model.objects.all()
        if is_active is not None:
            products = products.filter(is_active=is_active)
        if category:
            products = products.filter(category=category)
        try:
            return list(products.order_by("display_order", "created_at"))
        except DatabaseError as exc:
            raise PersistenceError(str(exc)) from exc

    def remove(self, product_id):
        """
        Delete a product record.

        Returns the locators its gallery referenced. They are left in the
        asset store; nothing else points at them any more.
        """
        product = self.load(product_id)
        orphaned = product.gallery.locators
        try:
            with transaction.atomic():
                product.delete()
        except DatabaseError as exc:
            logger.error("Deleting product %s failed: %s", product_id, exc)
            raise PersistenceError(str(exc)) from exc

        if orphaned:
            logger.info(
                "Product %s deleted, %d image(s) orphaned: %s",
                product_id,
                len(orphaned),
                ", ".join(orphaned),
            )
        return orphaned

    def update_gallery(self, product_id, mutate):
        """
        Apply ``mutate`` to the gallery as currently stored and save the result.

        The row stays locked between the read and the write, so concurrent
        updates each see the previous one's outcome.
        """
        try:
            with transaction.atomic():
                try:
                    product = self.model.objects.select_for_update().get(id=product_id)
                except (self.model.DoesNotExist, ValidationError, ValueError) as exc:
                    raise ProductNotFound(f"Product {product_id} not found") from exc
                product.set_gallery(mutate(product.gallery))
                product.save(update_fields=["images", "updated_at"])
        except DatabaseError as exc:
            logger.error("Updating gallery of product %s failed: %s", product_id, exc)
            raise PersistenceError(str(exc)) from exc
        return product
