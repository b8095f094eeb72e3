"""
Management command to reorder skill plan entries by prerequisites.

Usage:
    python manage.py reorder_skill_plans              # Reorder all plans
    python manage.py reorder_skill_plans --plan-id 1  # Reorder specific plan
    python manage.py reorder_skill_plans --dry-run    # Show what would be reordered
"""

import logging
from django.core.management.base import BaseCommand

from planner.skill_plans.exceptions import SkillPlanError

logger = logging.getLogger('skillmon')


class Command(BaseCommand):
    help = 'Reorder skill plan entries based on prerequisite dependencies'

    def add_arguments(self, parser):
        parser.add_argument(
            '--plan-id',
            type=int,
            dest='plan_id',
            help='Reorder a specific skill plan by ID',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            dest='dry_run',
            help='Show what would be reordered without actually doing it',
        )

    def handle(self, *args, **options):
        from planner.stores import get_plan_service

        plan_id = options.get('plan_id')
        dry_run = options.get('dry_run', False)
        service = get_plan_service()

        if plan_id:
            plans = [plan for plan in service.list_plans() if plan.plan_id == plan_id]
        else:
            plans = service.list_plans()

        total = len(plans)
        if total == 0:
            self.stdout.write(self.style.WARNING('No skill plans found.'))
            return

        self.stdout.write(f'Found {total} skill plan(s) to reorder.')

        if dry_run:
            self.stdout.write(self.style.WARNING('DRY RUN - No changes will be made'))
            for plan in plans:
                result = service.validate_plan(plan.plan_id)
                entry_count = len(service.entries(plan.plan_id))
                state = 'ordered' if result.is_valid else f'{len(result.errors)} violation(s)'
                self.stdout.write(f'  - Plan {plan.plan_id}: "{plan.name}" ({entry_count} entries, {state})')
            return

        reordered = 0
        unchanged = 0
        skipped = 0
        errors = 0

        for plan in plans:
            entry_count = len(service.entries(plan.plan_id))
            if entry_count == 0:
                self.stdout.write(f'  Skipping plan {plan.plan_id}: "{plan.name}" (no entries)')
                skipped += 1
                continue

            try:
                changed = service.sort_plan(plan.plan_id)
            except SkillPlanError as e:
                logger.error(f'Failed to reorder plan {plan.plan_id}: {e}')
                self.stdout.write(
                    self.style.ERROR(f'  ✗ Error reordering plan {plan.plan_id}: "{plan.name}": {e}')
                )
                errors += 1
                continue

            if changed:
                self.stdout.write(
                    self.style.SUCCESS(f'  ✓ Reordered plan {plan.plan_id}: "{plan.name}" ({entry_count} entries)')
                )
                reordered += 1
            else:
                unchanged += 1

        # Summary
        self.stdout.write('\n' + '=' * 60)
        self.stdout.write(f'Total: {total} plan(s)')
        self.stdout.write(self.style.SUCCESS(f'  Reordered: {reordered}'))
        if unchanged > 0:
            self.stdout.write(f'  Already ordered: {unchanged}')
        if skipped > 0:
            self.stdout.write(self.style.WARNING(f'  Skipped: {skipped}'))
        if errors > 0:
            self.stdout.write(self.style.ERROR(f'  Errors: {errors}'))
