from django.core.management.base import BaseCommand, CommandError
from inventory.quantities import format_quantity
from inventory.selectors import find_drift


class Command(BaseCommand):
    help = "Fold the ledger for every stock level and report rows whose quantity has drifted."

    def add_arguments(self, parser):
        parser.add_argument("--business", type=int, default=None, help="Only check this business id")

    def handle(self, *args, **options):
        drift = find_drift(business_id=options["business"])
        for row in drift:
            scope = "business" if row.branch_id is None else f"branch {row.branch_id}"
            self.stdout.write(
                f"business={row.business_id} item={row.item_id} {scope}: "
                f"stored {format_quantity(row.projected)}, ledger {format_quantity(row.folded)}"
            )
        if drift:
            raise CommandError(f"Stock drift found for {len(drift)} key(s)")
        self.stdout.write(self.style.SUCCESS("Stock levels match the ledger"))
