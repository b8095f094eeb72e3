"""
Management command to optimise a skill plan's order and remaps.

Usage:
    python manage.py optimize_skill_plan 1                        # Report only
    python manage.py optimize_skill_plan 1 --character-id 9000 --max-remaps 2
    python manage.py optimize_skill_plan 1 --apply                # Write order and remaps
    python manage.py optimize_skill_plan 1 --apply --async        # Queue on django-q
"""

from django.core.management.base import BaseCommand, CommandError

from planner.skill_plans.arithmetic import ATTRIBUTE_NAMES


def _format_duration(seconds: int) -> str:
    days, rest = divmod(int(seconds), 86400)
    hours, rest = divmod(rest, 3600)
    minutes = rest // 60
    if days:
        return f'{days}d {hours}h {minutes}m'
    if hours:
        return f'{hours}h {minutes}m'
    return f'{minutes}m'


class Command(BaseCommand):
    help = 'Optimise the training order and attribute remaps of a skill plan'

    def add_arguments(self, parser):
        parser.add_argument('plan_id', type=int, help='Skill plan ID')
        parser.add_argument(
            '--character-id',
            type=int,
            dest='character_id',
            help='Character whose SP and implants to use (default: a fresh character)',
        )
        parser.add_argument(
            '--max-remaps',
            type=int,
            dest='max_remaps',
            help='Maximum number of remaps (default: SKILL_PLAN_MAX_REMAPS)',
        )
        parser.add_argument(
            '--apply',
            action='store_true',
            help='Write the optimised order and remaps to the plan',
        )
        parser.add_argument(
            '--async',
            action='store_true',
            dest='run_async',
            help='Queue the optimisation on the task cluster instead of running it here',
        )

    def handle(self, *args, **options):
        from planner.tasks import optimize_plan, queue_plan_optimization

        plan_id = options['plan_id']
        character_id = options.get('character_id')
        max_remaps = options.get('max_remaps')
        apply = options.get('apply', False)

        if max_remaps is not None and max_remaps < 0:
            raise CommandError('--max-remaps must not be negative')

        if options.get('run_async'):
            task_id = queue_plan_optimization(plan_id, character_id, max_remaps, apply)
            self.stdout.write(self.style.SUCCESS(f'✓ Queued optimisation of plan {plan_id} (task {task_id})'))
            return

        result = optimize_plan(plan_id, character_id, max_remaps, apply)
        if 'error' in result:
            raise CommandError(result['error'])

        original = result['original_seconds']
        optimized = result['optimized_seconds']
        self.stdout.write(f'Plan {plan_id}: {len(result["entries"])} entries')
        self.stdout.write(f'  Current:   {_format_duration(original)}')
        self.stdout.write(f'  Optimised: {_format_duration(optimized)}')
        self.stdout.write(self.style.SUCCESS(f'  Saved:     {_format_duration(original - optimized)}'))

        for remap in result['remaps']:
            values = ', '.join(f'{name[:3].upper()} +{remap["attributes"][name]}'
                               for name in ATTRIBUTE_NAMES.values())
            self.stdout.write(f'  Remap before entry {remap["entry_index"] + 1}: {values}')

        if apply:
            self.stdout.write(self.style.SUCCESS('✓ Applied to plan'))
        else:
            self.stdout.write(self.style.WARNING('Not applied (use --apply to write the result)'))
