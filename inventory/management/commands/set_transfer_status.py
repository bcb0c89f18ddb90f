from django.core.management.base import BaseCommand, CommandError

from inventory.services import ServiceError, TransferStatusService, TransitionOutcome


class Command(BaseCommand):
    help = 'Move an inventory transfer to a new status, applying stock movements when it enters or leaves Completed'

    def add_arguments(self, parser):
        parser.add_argument('transfer_id', type=int, help='Transfer id')
        parser.add_argument('status', help='New status, e.g. COMPLETED or "In Transit"')
        parser.add_argument('--actor', type=int, required=True, help='Id of the active staff member performing the change')

    def handle(self, *args, **options):
        try:
            result = TransferStatusService.transition(
                options['transfer_id'], options['status'], options['actor']
            )
        except ServiceError as e:
            raise CommandError(f'{e.code}: {e.message}') from e

        if result.outcome is TransitionOutcome.NO_CHANGE:
            self.stdout.write(self.style.WARNING(result.message))
            return

        self.stdout.write(self.style.SUCCESS(result.message))
        for movement in result.movements:
            self.stdout.write(
                f'  Location #{movement.location_id}: {movement.change_amount:+d} '
                f'({movement.stock_before} -> {movement.stock_after}), adjustment #{movement.adjustment_id}'
            )
