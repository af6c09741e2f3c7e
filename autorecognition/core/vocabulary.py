"""
Keyword tables shared by text classification and extraction
"""
from typing import List, Tuple

from autorecognition.core.enums import PaymentMethod

CURRENCY_SYMBOLS = "¥￥$€"

# Currency words that may follow a number ("25元", "12 rmb")
CURRENCY_WORDS = r"(?:元|块|rmb|cny|usd|yuan)"

# Business-suffix words that mark a merchant name
MERCHANT_KEYWORDS: List[str] = [
    "店", "餐厅", "公司", "有限", "超市", "商场", "中心",
    "store", "shop", "restaurant", "cafe", "café", "inc", "ltd", "llc",
    "co.", "market", "mall", "center", "centre",
]

# Words that usually precede a goods/service description
DESCRIPTION_KEYWORDS: List[str] = [
    "商品", "服务", "项目", "消费", "购买", "订单", "产品",
    "item", "service", "order", "product", "purchase",
]

# Ordered: the first keyword found in a block decides the method
PAYMENT_KEYWORDS: List[Tuple[str, PaymentMethod]] = [
    ("微信", PaymentMethod.WECHAT),
    ("wechat", PaymentMethod.WECHAT),
    ("支付宝", PaymentMethod.ALIPAY),
    ("alipay", PaymentMethod.ALIPAY),
    ("现金", PaymentMethod.CASH),
    ("cash", PaymentMethod.CASH),
    ("银行卡", PaymentMethod.BANK_CARD),
    ("信用卡", PaymentMethod.CREDIT_CARD),
    ("credit card", PaymentMethod.CREDIT_CARD),
    ("储蓄卡", PaymentMethod.DEBIT_CARD),
    ("debit card", PaymentMethod.DEBIT_CARD),
    ("apple pay", PaymentMethod.APPLE_PAY),
    ("刷卡", PaymentMethod.CARD),
    ("visa", PaymentMethod.CARD),
    ("mastercard", PaymentMethod.CARD),
    ("card", PaymentMethod.CARD),
]


def find_payment_method(text: str):
    """First payment method whose keyword occurs in text, or None"""
    lowered = text.lower()
    for keyword, method in PAYMENT_KEYWORDS:
        if keyword in lowered:
            return method
    return None
