"""
Management command to export a skill plan.

Usage:
    python manage.py export_skill_plan 1                       # XML to stdout
    python manage.py export_skill_plan 1 --format text
    python manage.py export_skill_plan 1 --format json --output plan.json
"""

from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from planner.skill_plans.exceptions import SkillPlanError


class Command(BaseCommand):
    help = 'Export a skill plan as text, XML or JSON'

    def add_arguments(self, parser):
        parser.add_argument('plan_id', type=int, help='Skill plan ID')
        parser.add_argument(
            '--format',
            choices=['text', 'xml', 'json'],
            default='xml',
            dest='format_name',
            help='Output format (default: xml)',
        )
        parser.add_argument('--output', help='Write to this file instead of stdout')

    def handle(self, *args, **options):
        from planner.plan_formats import PlanExporter
        from planner.stores import get_plan_service

        try:
            content = PlanExporter(get_plan_service()).export_to_string(
                options['plan_id'], options['format_name'])
        except SkillPlanError as e:
            raise CommandError(str(e))

        output = options.get('output')
        if output:
            Path(output).write_text(content, encoding='utf-8')
            self.stdout.write(self.style.SUCCESS(f'✓ Wrote plan {options["plan_id"]} to {output}'))
        else:
            self.stdout.write(content, ending='')
