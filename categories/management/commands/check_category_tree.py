"""
Django management command to check category trees for invariant violations.
"""

from django.core.management.base import BaseCommand, CommandError

from categories.services import CategoryService
from tenants.models import Tenant


class Command(BaseCommand):
    help = (
        "Check every tenant's category tree for cycles, cross-tenant parents "
        "and gapped sibling orders"
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--tenant",
            type=int,
            help="Only check the tenant with this id",
        )
        parser.add_argument(
            "--fix",
            action="store_true",
            help="Renumber sibling groups and detach cyclic categories to root level",
        )

    def handle(self, *args, **options):
        tenants = Tenant.objects.all()
        if options["tenant"] is not None:
            tenants = tenants.filter(pk=options["tenant"])
            if not tenants.exists():
                raise CommandError(f"Tenant {options['tenant']} does not exist")

        broken = 0
        for tenant in tenants:
            problems = CategoryService.snapshot(tenant.pk).check_invariants()
            if not problems:
                self.stdout.write(self.style.SUCCESS(f"✅ {tenant.name}: OK"))
                continue

            self.stdout.write(
                self.style.ERROR(f"❌ {tenant.name}: {len(problems)} problem(s)")
            )
            for problem in problems:
                self.stdout.write(f"   - {problem}")

            if options["fix"]:
                patches = CategoryService.repair_order(tenant.pk)
                self.stdout.write(
                    self.style.WARNING(f"   Repaired {len(patches)} position(s)")
                )
            else:
                broken += 1

        if broken:
            raise CommandError(f"{broken} tenant(s) have inconsistent category trees")
        self.stdout.write(self.style.SUCCESS("\n✅ All category trees OK"))
