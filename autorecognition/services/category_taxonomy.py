"""
Category keyword taxonomy used by the scoring engine

Weights are tuning data. The scorer divides the weighted sum by the size of
each category's keyword set, so weights are on a 0-10 scale: a strong brand
keyword found in the merchant name alone can lift a category well above the
low-confidence floor.
"""
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from autorecognition.core.enums import CategoryId
from autorecognition.core.exceptions import ConfigurationError
from autorecognition.core.logging import get_logger

logger = get_logger(__name__)


class AmountBand(BaseModel):
    """Fallback category for amounts up to `upper` (inclusive); None means unbounded"""
    upper: Optional[Decimal] = Field(None, gt=0)
    category: CategoryId


class CategoryTaxonomy(BaseModel):
    """Keyword weights per category plus the amount-band fallback"""
    keywords: Dict[CategoryId, Dict[str, float]] = Field(..., min_length=1)
    amount_bands: List[AmountBand] = Field(..., min_length=1)
    default_category: CategoryId = CategoryId.OTHER

    def category_for_amount(self, amount: Decimal) -> CategoryId:
        for band in self.amount_bands:
            if band.upper is None or amount <= band.upper:
                return band.category
        return self.default_category


STRONG = 10.0
STANDARD = 8.0
WEAK = 5.0

DEFAULT_TAXONOMY = CategoryTaxonomy(
    keywords={
        CategoryId.FOOD: {
            "餐厅": STANDARD, "饭店": STANDARD, "食堂": STANDARD, "快餐": STANDARD,
            "咖啡": STANDARD, "奶茶": STANDARD, "外卖": STANDARD, "美团": STRONG,
            "饿了么": STRONG, "麦当劳": STRONG, "肯德基": STRONG, "星巴克": STRONG,
            "必胜客": STRONG, "海底捞": STRONG, "喜茶": STRONG, "瑞幸": STRONG,
            "午餐": STANDARD, "晚餐": STANDARD, "早餐": STANDARD, "火锅": STANDARD,
            "starbucks": STRONG, "mcdonald": STRONG, "restaurant": STANDARD, "coffee": STANDARD,
        },
        CategoryId.TRANSPORT: {
            "滴滴": STRONG, "出租车": STRONG, "网约车": STRONG, "地铁": STRONG,
            "公交": STRONG, "高铁": STANDARD, "火车": STANDARD, "加油": STRONG,
            "停车": STRONG, "高速": STANDARD, "过路费": STRONG, "车费": STRONG,
            "油费": STRONG, "共享单车": STRONG, "哈啰": STRONG, "交通": WEAK,
            "uber": STRONG, "taxi": STRONG, "metro": STANDARD, "parking": STANDARD,
        },
        CategoryId.SHOPPING: {
            "淘宝": STRONG, "京东": STRONG, "天猫": STRONG, "拼多多": STRONG,
            "超市": STANDARD, "商场": STANDARD, "购物中心": STANDARD, "便利店": STANDARD,
            "7-11": STRONG, "沃尔玛": STRONG, "家乐福": STRONG, "永辉": STRONG,
            "购物": STANDARD, "服装": STANDARD, "化妆品": STANDARD, "数码": STANDARD,
            "日用品": STANDARD, "零售": WEAK, "walmart": STRONG, "supermarket": STANDARD,
        },
        CategoryId.ENTERTAINMENT: {
            "电影": STRONG, "影院": STRONG, "ktv": STRONG, "网吧": STRONG,
            "游戏": STANDARD, "健身": STANDARD, "健身房": STRONG, "游泳": STANDARD,
            "娱乐": STANDARD, "游乐园": STRONG, "演唱会": STRONG, "音乐会": STRONG,
            "话剧": STRONG, "展览": STANDARD, "cinema": STRONG, "movie": STRONG,
        },
        CategoryId.BILLS: {
            "电费": STRONG, "水费": STRONG, "燃气费": STRONG, "话费": STRONG,
            "宽带": STRONG, "房租": STRONG, "物业费": STRONG, "物业": STANDARD,
            "缴费": STANDARD, "账单": STANDARD, "保险": STANDARD, "年费": STANDARD,
            "月费": STANDARD, "服务费": WEAK, "费用": WEAK, "utility": STANDARD,
        },
        CategoryId.HEALTHCARE: {
            "医院": STRONG, "诊所": STRONG, "药店": STRONG, "药房": STRONG,
            "体检": STRONG, "医疗": STRONG, "挂号": STRONG, "治疗": STANDARD,
            "药品": STRONG, "保健品": WEAK, "维生素": WEAK, "pharmacy": STRONG,
            "hospital": STRONG, "clinic": STRONG,
        },
        CategoryId.EDUCATION: {
            "学校": STRONG, "大学": STANDARD, "培训": STRONG, "学费": STRONG,
            "教育": STANDARD, "课程": STRONG, "辅导": STANDARD, "书店": STRONG,
            "文具": STANDARD, "教材": STRONG, "书籍": STANDARD, "tuition": STRONG,
            "course": STANDARD, "bookstore": STRONG,
        },
        CategoryId.TRAVEL: {
            "酒店": STRONG, "宾馆": STRONG, "民宿": STRONG, "机票": STRONG,
            "航空": STRONG, "船票": STRONG, "旅游": STRONG, "旅行": STRONG,
            "景点": STANDARD, "门票": STANDARD, "携程": STRONG, "hotel": STRONG,
            "airline": STRONG, "airbnb": STRONG,
        },
    },
    amount_bands=[
        AmountBand(upper=Decimal("50"), category=CategoryId.FOOD),
        AmountBand(upper=Decimal("200"), category=CategoryId.SHOPPING),
        AmountBand(upper=Decimal("1000"), category=CategoryId.BILLS),
        AmountBand(upper=None, category=CategoryId.TRAVEL),
    ],
)


def load_taxonomy(path: Optional[str] = None) -> CategoryTaxonomy:
    """
    Load a taxonomy from a JSON file, or return the bundled default

    Raises:
        ConfigurationError: The file is missing or invalid
    """
    if not path:
        return DEFAULT_TAXONOMY

    try:
        taxonomy = CategoryTaxonomy.model_validate_json(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValidationError) as e:
        raise ConfigurationError(
            f"Failed to load category taxonomy: {str(e)}",
            details={"path": path, "error": str(e)}
        )

    logger.info("Category taxonomy loaded", path=path, categories=len(taxonomy.keywords))
    return taxonomy
