from django.core.management.base import BaseCommand

from catalog.gallery import is_consistent, normalize
from catalog.gateway import CatalogGateway


class Command(BaseCommand):
    help = "Repair product galleries that do not have exactly one primary image"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List the products that would be repaired without saving them",
        )

    def handle(self, *args, **options):
        gateway = CatalogGateway()
        fixed_count = 0

        for product in gateway.list():
            gallery = product.gallery
            if is_consistent(gallery):
                continue

            repaired = normalize(gallery)
            primary = repaired[repaired.primary_index].locator
            if options["dry_run"]:
                self.stdout.write(f"{product.id} {product.title}: primary -> {primary}")
                fixed_count += 1
                continue

            product.set_gallery(repaired)
            gateway.save(product)
            self.stdout.write(
                self.style.SUCCESS(f"{product.id} {product.title}: primary -> {primary}")
            )
            fixed_count += 1

        if fixed_count == 0:
            self.stdout.write("All galleries are consistent")
        elif options["dry_run"]:
            self.stdout.write(f"{fixed_count} gallery(ies) would be repaired")
        else:
            self.stdout.write(self.style.SUCCESS(f"Repaired {fixed_count} gallery(ies)"))
