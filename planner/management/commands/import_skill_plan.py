"""
Management command to import a skill plan document.

Usage:
    python manage.py import_skill_plan plan.xml                   # New plan, format detected
    python manage.py import_skill_plan plan.txt --format text --name "Logistics"
    python manage.py import_skill_plan plan.json --plan-id 3      # Merge into plan 3
    cat plan.txt | python manage.py import_skill_plan -           # Read from stdin
"""

import sys
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from planner.skill_plans.exceptions import SkillPlanError, UnmatchedSkills


class Command(BaseCommand):
    help = 'Import a skill plan from a text, XML or JSON document'

    def add_arguments(self, parser):
        parser.add_argument('path', help="Document to import, or '-' for stdin")
        parser.add_argument(
            '--format',
            choices=['text', 'xml', 'json'],
            dest='format_name',
            help='Document format (default: detect from content)',
        )
        parser.add_argument(
            '--plan-id',
            type=int,
            dest='plan_id',
            help='Merge into an existing plan instead of creating one',
        )
        parser.add_argument('--name', help='Name of the new plan (default: from the document or file name)')
        parser.add_argument('--description', help='Description of the new plan')

    def handle(self, *args, **options):
        from planner.plan_formats import PlanImporter
        from planner.stores import get_plan_service

        path = options['path']
        if path == '-':
            content = sys.stdin.read()
            default_name = None
        else:
            source = Path(path)
            if not source.exists():
                raise CommandError(f'File not found: {source}')
            content = source.read_text(encoding='utf-8')
            default_name = source.stem

        service = get_plan_service()
        importer = PlanImporter(service)
        try:
            document = importer.parse(content, options.get('format_name'))
            name = options.get('name') or (document.name if document.name else default_name)
            plan_id = importer.import_document(
                document,
                plan_id=options.get('plan_id'),
                name=name,
                description=options.get('description'),
            )
        except UnmatchedSkills as e:
            for skill_name in e.names:
                self.stdout.write(self.style.ERROR(f'  ✗ Unknown skill: {skill_name}'))
            raise CommandError(f'{len(e.names)} skill(s) could not be matched')
        except SkillPlanError as e:
            raise CommandError(str(e))

        entries = service.entries(plan_id)
        planned = sum(1 for entry in entries if entry.is_planned)
        self.stdout.write(self.style.SUCCESS(
            f'✓ Imported into plan {plan_id}: {len(entries)} entries ({planned} planned)'
        ))
