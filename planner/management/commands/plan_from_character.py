"""
Management command to build a skill plan from a character's trained skills.

Usage:
    python manage.py plan_from_character 9000 --group 255 --group 257
    python manage.py plan_from_character 9000 --group 255 --name "Gunnery" --dry-run
"""

from django.core.management.base import BaseCommand, CommandError


class Command(BaseCommand):
    help = "Create a skill plan from the skills a character has trained in some skill groups"

    def add_arguments(self, parser):
        parser.add_argument('character_id', type=int, help='Character ID')
        parser.add_argument(
            '--group',
            type=int,
            action='append',
            dest='groups',
            required=True,
            help='Skill group ID to include (repeatable)',
        )
        parser.add_argument('--name', help='Plan name (default: "<character> skills")')
        parser.add_argument(
            '--dry-run',
            action='store_true',
            dest='dry_run',
            help='Show the plan without creating it',
        )

    def handle(self, *args, **options):
        from planner.models import Character
        from planner.skill_plans import build_character_plan
        from planner.stores import DatabaseCharacterState, SdeCatalog, get_plan_service

        character = Character.objects.filter(id=options['character_id']).first()
        if character is None:
            raise CommandError(f'Character not found: {options["character_id"]}')

        catalog = SdeCatalog()
        catalog.preload()
        plan = build_character_plan(DatabaseCharacterState(character), catalog, options['groups'])
        if not plan.nodes:
            self.stdout.write(self.style.WARNING('Character has no trained skills in those groups.'))
            return

        for group in plan.group_counts:
            self.stdout.write(f'  {group.group_name}: {group.skill_count} skill(s)')
        self.stdout.write(f'{len(plan.nodes)} entries, {plan.estimated_sp:,} SP')

        if options.get('dry_run'):
            self.stdout.write(self.style.WARNING('DRY RUN - No plan created'))
            return

        name = options.get('name') or f'{character.name} skills'
        plan_id = get_plan_service(catalog).create_plan_with_entries(name, plan.requests)
        self.stdout.write(self.style.SUCCESS(f'✓ Created plan {plan_id}: "{name}"'))
