"""
보관료 정산 Management Command

Celery Beat 없이 수동으로 보관료를 정산하거나, 특정 화물만 다시 정산할 때 사용합니다.
같은 through-date로 여러 번 실행해도 중복 청구되지 않습니다.
"""

from datetime import date

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from logistics.models import Package, StorageCharge
from logistics.services import ServiceError, StorageFeeService


class Command(BaseCommand):
    help = "보관료를 정산합니다 (기본: 오늘 0시 기준, 어제까지 보관일)"

    def add_arguments(self, parser):
        parser.add_argument(
            "--through-date",
            type=date.fromisoformat,
            default=None,
            help="정산 종료일 YYYY-MM-DD (해당 날짜 미포함, 기본: 오늘)",
        )
        parser.add_argument(
            "--package",
            default=None,
            help="특정 화물 ID(UUID)만 정산",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="실제 정산하지 않고 대상 화물만 출력",
        )

    def handle(self, *args, **options):
        through_date = options["through_date"] or timezone.localdate()
        package_id = options["package"]
        dry_run = options["dry_run"]

        if package_id:
            if not Package.objects.filter(pk=package_id).exists():
                raise CommandError(f"화물을 찾을 수 없습니다: {package_id}")
            package_ids = [package_id]
        else:
            package_ids = list(StorageFeeService.billable_package_ids())

        self.stdout.write(self.style.WARNING(f"=== 보관료 정산 {'(DRY RUN)' if dry_run else ''} ==="))
        self.stdout.write(f"정산 종료일(미포함): {through_date.isoformat()}")
        self.stdout.write(f"대상 화물: {len(package_ids)}개")
        self.stdout.write("")

        if dry_run:
            for pk in package_ids:
                last = (
                    StorageCharge.objects.filter(package_id=pk)
                    .order_by("-charge_to_date")
                    .values_list("charge_to_date", flat=True)
                    .first()
                )
                self.stdout.write(f"- {pk} (마지막 정산: {last.isoformat() if last else '없음'})")
            self.stdout.write(self.style.NOTICE("DRY RUN 모드: 실제 정산은 수행되지 않았습니다."))
            return

        if package_id:
            try:
                charges = StorageFeeService.accrue_charges(package_id, through_date)
            except ServiceError as e:
                raise CommandError(f"[{e.code}] {e.message}") from e
            self.stdout.write(self.style.SUCCESS(f"✓ 정산 완료: {len(charges)}건 생성"))
            return

        try:
            summary = StorageFeeService.accrue_all(through_date, package_ids=package_ids)
        except ServiceError as e:
            raise CommandError(f"[{e.code}] {e.message}") from e

        for failure in summary["failures"]:
            self.stdout.write(
                self.style.ERROR(f"✗ {failure['package_id']}: [{failure['code']}] {failure['message']}")
            )

        self.stdout.write(
            self.style.SUCCESS(
                f"✓ 정산 완료: 처리 {summary['processed']}개, "
                f"생성 {summary['charges_created']}건, 실패 {summary['failed']}개"
            )
        )
