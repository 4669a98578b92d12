"""
Market Sandbox - Catalog

SMS 서비스, eSIM 요금제, 모바일 프록시 상품의 정적(읽기 전용) 카탈로그.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class SmsServiceOffer:
    """SMS 인증 서비스 (미국 non-VoIP 번호 기준 가격)"""
    id: str
    name: str
    category: str
    price: Decimal
    estimated_delivery: str


@dataclass(frozen=True)
class EsimPlan:
    """eSIM 데이터 요금제"""
    plan_id: str
    name: str
    country: str
    region: str
    data_gb: float          # 999 = 무제한
    duration_days: int
    price: Decimal
    carrier: str
    apn: str
    routing: str
    topup_available: bool
    topup_price: Decimal    # GB당


@dataclass(frozen=True)
class ProxyOffering:
    """
    모바일 프록시 상품

    type이 "gb"이면 price_per_gb, "dedicated"이면 price_per_month와
    bandwidth_gb(월 포함 대역폭)를 사용합니다.
    """
    country: str
    carrier: str
    type: str
    network: str
    price_per_gb: Optional[Decimal] = None
    price_per_month: Optional[Decimal] = None
    bandwidth_gb: Optional[float] = None


SMS_SERVICES: Tuple[SmsServiceOffer, ...] = (
    SmsServiceOffer("whatsapp", "WhatsApp", "messaging", Decimal("2.50"), "1-3 minutes"),
    SmsServiceOffer("telegram", "Telegram", "messaging", Decimal("1.50"), "1-2 minutes"),
    SmsServiceOffer("google", "Google / Gmail", "email", Decimal("1.80"), "1-3 minutes"),
    SmsServiceOffer("twitter", "Twitter / X", "social", Decimal("2.00"), "1-5 minutes"),
    SmsServiceOffer("instagram", "Instagram", "social", Decimal("2.20"), "1-3 minutes"),
    SmsServiceOffer("discord", "Discord", "messaging", Decimal("1.20"), "1-2 minutes"),
    SmsServiceOffer("tiktok", "TikTok", "social", Decimal("2.50"), "1-5 minutes"),
    SmsServiceOffer("facebook", "Facebook", "social", Decimal("1.80"), "1-3 minutes"),
    SmsServiceOffer("uber", "Uber", "ride-hailing", Decimal("2.00"), "1-3 minutes"),
    SmsServiceOffer("openai", "OpenAI / ChatGPT", "ai", Decimal("3.00"), "1-3 minutes"),
)


def _plan(plan_id, name, country, region, data_gb, duration_days, price,
          carrier, apn, routing, topup_available, topup_price) -> EsimPlan:
    return EsimPlan(
        plan_id=plan_id, name=name, country=country, region=region,
        data_gb=data_gb, duration_days=duration_days, price=Decimal(price),
        carrier=carrier, apn=apn, routing=routing,
        topup_available=topup_available, topup_price=Decimal(topup_price),
    )


ESIM_PLANS: Tuple[EsimPlan, ...] = (
    _plan("esim_jp_3g_7d", "Japan 3GB / 7 Days", "JP", "Asia", 3, 7, "4.50", "IIJmio", "iijmio.jp", "Tokyo, Japan", True, "1.80"),
    _plan("esim_jp_5g_14d", "Japan 5GB / 14 Days", "JP", "Asia", 5, 14, "7.50", "IIJmio", "iijmio.jp", "Tokyo, Japan", True, "1.80"),
    _plan("esim_jp_10g_30d", "Japan 10GB / 30 Days", "JP", "Asia", 10, 30, "12.00", "IIJmio", "iijmio.jp", "Tokyo, Japan", True, "1.50"),
    _plan("esim_jp_unl_30d", "Japan Unlimited / 30 Days", "JP", "Asia", 999, 30, "22.00", "SoftBank", "plus.4g", "Tokyo, Japan", False, "0"),
    _plan("esim_us_5g_7d", "USA 5GB / 7 Days", "US", "North America", 5, 7, "6.00", "T-Mobile", "fast.t-mobile.com", "Los Angeles, US", True, "1.50"),
    _plan("esim_us_10g_30d", "USA 10GB / 30 Days", "US", "North America", 10, 30, "11.00", "T-Mobile", "fast.t-mobile.com", "Los Angeles, US", True, "1.30"),
    _plan("esim_us_20g_30d", "USA 20GB / 30 Days", "US", "North America", 20, 30, "18.00", "T-Mobile", "fast.t-mobile.com", "Los Angeles, US", True, "1.10"),
    _plan("esim_gb_5g_7d", "UK 5GB / 7 Days", "GB", "Europe", 5, 7, "5.50", "Three", "three.co.uk", "London, UK", True, "1.40"),
    _plan("esim_gb_10g_30d", "UK 10GB / 30 Days", "GB", "Europe", 10, 30, "10.00", "Three", "three.co.uk", "London, UK", True, "1.20"),
    _plan("esim_de_5g_7d", "Germany 5GB / 7 Days", "DE", "Europe", 5, 7, "5.00", "O2", "internet", "Frankfurt, DE", True, "1.30"),
    _plan("esim_de_10g_30d", "Germany 10GB / 30 Days", "DE", "Europe", 10, 30, "9.00", "O2", "internet", "Frankfurt, DE", True, "1.10"),
    _plan("esim_th_5g_7d", "Thailand 5GB / 7 Days", "TH", "Asia", 5, 7, "3.50", "AIS", "internet", "Bangkok, TH", True, "0.90"),
    _plan("esim_th_15g_30d", "Thailand 15GB / 30 Days", "TH", "Asia", 15, 30, "8.00", "AIS", "internet", "Bangkok, TH", True, "0.70"),
    _plan("esim_tr_5g_7d", "Turkey 5GB / 7 Days", "TR", "Europe", 5, 7, "4.00", "Turkcell", "internet", "Istanbul, TR", True, "1.00"),
    _plan("esim_br_5g_7d", "Brazil 5GB / 7 Days", "BR", "South America", 5, 7, "5.50", "Claro", "claro.com.br", "Sao Paulo, BR", True, "1.30"),
)


def _gb(country, carrier, price, network) -> ProxyOffering:
    return ProxyOffering(country, carrier, "gb", network, price_per_gb=Decimal(price))


def _dedicated(country, carrier, price, bandwidth, network) -> ProxyOffering:
    return ProxyOffering(
        country, carrier, "dedicated", network,
        price_per_month=Decimal(price), bandwidth_gb=bandwidth,
    )


PROXY_OFFERINGS: Tuple[ProxyOffering, ...] = (
    _gb("US", "Verizon", "2.99", "5G"),
    _gb("US", "T-Mobile", "2.49", "5G"),
    _gb("US", "AT&T", "2.79", "5G"),
    _dedicated("US", "Verizon", "80", 30, "5G"),
    _dedicated("US", "T-Mobile", "70", 30, "5G"),
    _gb("GB", "Vodafone", "2.99", "5G"),
    _gb("GB", "EE", "2.79", "5G"),
    _dedicated("GB", "Vodafone", "85", 30, "5G"),
    _gb("DE", "Telekom", "3.29", "5G"),
    _dedicated("DE", "Telekom", "90", 25, "5G"),
    _gb("NL", "KPN", "2.79", "4G LTE"),
    _dedicated("NL", "KPN", "75", 25, "4G LTE"),
    _gb("BR", "Claro", "1.99", "4G LTE"),
    _gb("IN", "Jio", "0.99", "5G"),
    _gb("JP", "NTT Docomo", "3.49", "5G"),
    _dedicated("JP", "NTT Docomo", "100", 25, "5G"),
)

PROXY_TYPES = ("gb", "dedicated")


class Catalog:
    """
    카탈로그 조회기

    Usage:
        catalog = Catalog()                       # 기본 카탈로그
        catalog = Catalog(proxies=[...])          # 테스트용 카탈로그 주입

        plan = catalog.find_plan("esim_jp_10g_30d")
        offers = catalog.find_proxy_offerings("gb", "US")
    """

    def __init__(
        self,
        services: Sequence[SmsServiceOffer] = SMS_SERVICES,
        plans: Sequence[EsimPlan] = ESIM_PLANS,
        proxies: Sequence[ProxyOffering] = PROXY_OFFERINGS,
    ):
        self.services = tuple(services)
        self.plans = tuple(plans)
        self.proxies = tuple(proxies)

    # =========================================================================
    # SMS
    # =========================================================================

    def search_services(self, query: Optional[str] = None) -> List[SmsServiceOffer]:
        """이름/카테고리/ID 부분 일치 검색 (대소문자 무시)"""
        if not query:
            return list(self.services)
        q = query.lower()
        return [
            s for s in self.services
            if q in s.name.lower() or q in s.category.lower() or q in s.id.lower()
        ]

    def find_service(self, service_id: str) -> Optional[SmsServiceOffer]:
        return next((s for s in self.services if s.id == service_id), None)

    # =========================================================================
    # eSIM
    # =========================================================================

    def search_plans(
        self,
        country: Optional[str] = None,
        min_duration: Optional[int] = None,
        min_data: Optional[float] = None
    ) -> List[EsimPlan]:
        """조건에 맞는 요금제를 가격 오름차순으로 반환"""
        results = list(self.plans)
        if country:
            results = [p for p in results if p.country == country]
        if min_duration:
            results = [p for p in results if p.duration_days >= min_duration]
        if min_data:
            results = [p for p in results if p.data_gb >= min_data]
        return sorted(results, key=lambda p: p.price)

    def find_plan(self, plan_id: str) -> Optional[EsimPlan]:
        return next((p for p in self.plans if p.plan_id == plan_id), None)

    # =========================================================================
    # Proxy
    # =========================================================================

    def search_proxy_offerings(
        self,
        country: Optional[str] = None,
        proxy_type: Optional[str] = None
    ) -> List[ProxyOffering]:
        results = list(self.proxies)
        if country:
            results = [p for p in results if p.country == country]
        if proxy_type:
            results = [p for p in results if p.type == proxy_type]
        return results

    def find_proxy_offerings(self, proxy_type: str, country: str) -> List[ProxyOffering]:
        """(type, country)에 맞는 상품을 카탈로그 순서대로 반환"""
        return [p for p in self.proxies if p.type == proxy_type and p.country == country]
