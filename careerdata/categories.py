"""
O*NET-SOC to career category mapping.

Resolution order:
1. Career-specific overrides (occupations miscategorized by SOC group)
2. Manager redistribution: management codes go to the category their
   holders are typically promoted from, otherwise stay in "management"
3. Healthcare split: clinical vs technical
4. Default SOC major group mapping
"""

from typing import Dict, Optional

from .normalize import is_valid_code

ALL_CATEGORY_IDS = (
    "management",
    "business-finance",
    "legal",
    "technology",
    "engineering",
    "science",
    "social-services",
    "education",
    "arts-media",
    "healthcare-clinical",
    "healthcare-technical",
    "protective-services",
    "food-service",
    "building-grounds",
    "personal-care",
    "sales",
    "office-admin",
    "agriculture",
    "construction",
    "installation-repair",
    "production",
    "transportation",
    "military",
)

# 29 and 31 are handled by the healthcare split
MAJOR_GROUP_TO_CATEGORY: Dict[str, str] = {
    "11": "management",
    "13": "business-finance",
    "15": "technology",
    "17": "engineering",
    "19": "science",
    "21": "social-services",
    "23": "legal",
    "25": "education",
    "27": "arts-media",
    "33": "protective-services",
    "35": "food-service",
    "37": "building-grounds",
    "39": "personal-care",
    "41": "sales",
    "43": "office-admin",
    "45": "agriculture",
    "47": "construction",
    "49": "installation-repair",
    "51": "production",
    "53": "transportation",
    "55": "military",
}

CAREER_OVERRIDES: Dict[str, str] = {
    # Models: creative/performance work rather than transactional sales
    "41-9012.00": "arts-media",
}

MANAGER_TO_CATEGORY: Dict[str, str] = {
    "11-2021.00": "business-finance",  # Marketing Managers
    "11-2033.00": "business-finance",  # Fundraising Managers
    "11-3031.00": "business-finance",  # Financial Managers
    "11-3031.01": "business-finance",  # Treasurers and Controllers
    "11-3031.03": "business-finance",  # Investment Fund Managers
    "11-3061.00": "business-finance",  # Purchasing Managers
    "11-3111.00": "business-finance",  # Compensation and Benefits Managers
    "11-3121.00": "business-finance",  # Human Resources Managers
    "11-3131.00": "business-finance",  # Training and Development Managers
    "11-2022.00": "sales",  # Sales Managers
    "11-2011.00": "arts-media",  # Advertising and Promotions Managers
    "11-2032.00": "arts-media",  # Public Relations Managers
    "11-3071.00": "transportation",  # Transportation, Storage, and Distribution Managers
    "11-3071.04": "transportation",  # Supply Chain Managers
    "11-3021.00": "technology",  # Computer and Information Systems Managers
    "11-9041.00": "engineering",  # Architectural and Engineering Managers
    "11-9041.01": "engineering",  # Biofuels/Biodiesel Technology Managers
    "11-3051.02": "engineering",  # Geothermal Production Managers
    "11-3051.03": "engineering",  # Biofuels Production Managers
    "11-3051.06": "engineering",  # Hydroelectric Production Managers
    "11-9199.09": "engineering",  # Wind Energy Operations Managers
    "11-9199.10": "engineering",  # Wind Energy Development Managers
    "11-9111.00": "healthcare-clinical",  # Medical and Health Services Managers
    "11-9121.01": "healthcare-clinical",  # Clinical Research Coordinators
    "11-9031.00": "education",  # Education and Childcare Administrators
    "11-9032.00": "education",  # Education Administrators, K-12
    "11-9033.00": "education",  # Education Administrators, Postsecondary
    "11-9039.00": "education",  # Education Administrators, All Other
    "11-9021.00": "construction",  # Construction Managers
    "11-9013.00": "agriculture",  # Farmers, Ranchers, and Other Agricultural Managers
    "11-9051.00": "food-service",  # Food Service Managers
    "11-9121.00": "science",  # Natural Sciences Managers
    "11-9121.02": "science",  # Water Resource Specialists
    "11-9151.00": "social-services",  # Social and Community Service Managers
    "11-3013.01": "protective-services",  # Security Managers
}


def get_category(code: str) -> str:
    """
    Return the category ID for an O*NET-SOC code ("15-1252.00" or "15-1252").

    Raises:
        ValueError: if the code format is invalid or the major group is unknown
    """
    if not is_valid_code(code):
        raise ValueError(f'Invalid O*NET-SOC code format: "{code}". Expected: XX-XXXX or XX-XXXX.XX')

    override = CAREER_OVERRIDES.get(code)
    if override:
        return override

    major = code[:2]
    minor = code[:4]

    if major == "11":
        return MANAGER_TO_CATEGORY.get(code, "management")

    if major == "29":
        if minor in ("29-1", "29-9"):
            return "healthcare-clinical"
        return "healthcare-technical"

    if major == "31":
        return "healthcare-technical"

    category = MAJOR_GROUP_TO_CATEGORY.get(major)
    if category is None:
        raise ValueError(f'Unknown SOC major group: "{major}" from code "{code}"')
    return category


def get_category_safe(code: str) -> Optional[str]:
    """Like get_category, but returns None instead of raising."""
    try:
        return get_category(code)
    except ValueError:
        return None


def is_category_id(value: str) -> bool:
    return value in ALL_CATEGORY_IDS
