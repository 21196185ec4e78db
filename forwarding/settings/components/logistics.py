"""
Logistics Configuration
배송 요금, 부피무게, 보관료 정산 관련 설정을 관리합니다.

.env 파일 예시:
    RATE_QUOTE_CACHE_TIMEOUT=600
    STORAGE_ACCRUAL_FANOUT=TRUE
"""

import os

# ==========================================
# 부피무게 (Volumetric Weight)
# ==========================================
#
# 부피무게 = (가로 x 세로 x 높이) / 5000
# cm 단위 입력, kg 단위 출력 (고정 상수)

VOLUMETRIC_DIVISOR = 5000

# ==========================================
# 통화 (Currency) 참조 데이터
# ==========================================
#
# 통화별 최소 단위 자릿수 (ISO 4217 minor unit)
# 여기에 없는 통화는 CURRENCY_DEFAULT_MINOR_UNITS 자리로 반올림합니다.

CURRENCY_MINOR_UNITS = {
    "USD": 2,
    "EUR": 2,
    "GBP": 2,
    "CNY": 2,
    "HKD": 2,
    "KRW": 0,
    "JPY": 0,
    "VND": 0,
    "KWD": 3,
    "BHD": 3,
}
CURRENCY_DEFAULT_MINOR_UNITS = 2
DEFAULT_CURRENCY = os.environ.get("DEFAULT_CURRENCY", "USD")

# ==========================================
# 배송 요금 견적 캐시
# ==========================================

# 견적 결과 캐시 유효 시간 (초)
# 요금표가 변경되면 버전 키가 올라가므로 이전 캐시는 자동으로 무효화됩니다.
RATE_QUOTE_CACHE_TIMEOUT = int(os.environ.get("RATE_QUOTE_CACHE_TIMEOUT", 600))

# ==========================================
# 보관료 정산 (Storage Billing)
# ==========================================

# 배치 정산 시 패키지별 Celery 서브태스크로 분산 실행 여부
STORAGE_ACCRUAL_FANOUT = os.environ.get("STORAGE_ACCRUAL_FANOUT", "FALSE") == "TRUE"

# 보관료 정산 대상에서 제외되는 패키지 상태 (출고/폐기 등 보관 종료 상태)
STORAGE_BILLING_TERMINAL_STATUSES = ("shipped", "delivered", "returned", "disposed")

# 보관 요금표가 없을 때 견적(예상 보관료)에만 사용하는 기본값
# 실제 정산은 요금표가 없으면 StoragePricingNotFound로 실패합니다.
STORAGE_ESTIMATE_DEFAULT_FREE_DAYS = 7
STORAGE_ESTIMATE_DEFAULT_DAILY_RATE = "2.00"
