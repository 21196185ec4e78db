from django.apps import AppConfig


class LogisticsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "logistics"
    verbose_name = "물류/정산"

    def ready(self):
        """
        앱이 준비되면 시그널 등록

        Zone/국가/요율 변경 시 견적 캐시 버전을 올립니다.
        """
        import logistics.signals  # noqa
