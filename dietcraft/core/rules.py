from typing import Any, Dict, List

# --- Plan Text Vocabulary ---
# Meal labels recognised at the start of a plan line (matched case-insensitively)
MEAL_TYPES: List[str] = [
    "Breakfast",
    "Lunch",
    "Dinner",
    "Snack",
    "Mid-Morning",
    "Evening",
    "Pre-Workout",
    "Post-Workout",
]

WEEKDAYS: List[str] = [
    "MONDAY",
    "TUESDAY",
    "WEDNESDAY",
    "THURSDAY",
    "FRIDAY",
    "SATURDAY",
    "SUNDAY",
]

# Short all-caps lines at or above this length are treated as prose
MAX_CAPS_HEADING_LENGTH = 60

# --- Safety ---
# Generated plans containing any of these phrases are rejected outright
UNSAFE_PHRASES: List[str] = [
    "this will cure",
    "medical treatment",
    "guaranteed results",
    "diagnose",
    "prescribe medication",
    "replace your doctor",
]

# --- Branding ---
DEFAULT_DISCLAIMER = (
    "This meal plan is personalized for your specific needs. "
    "Consult your healthcare provider before making dietary changes."
)

DEFAULT_BRANDING: Dict[str, Any] = {
    "business_name": "",
    "tagline": "",
    "logo_url": "",
    "primary_color": "#22c55e",
    "secondary_color": "#16a34a",
    "font_family": "Inter",
    "header": {
        "show_logo": True,
        "logo_alignment": "left",
        "show_business_name": True,
    },
    "footer": {
        "phone": "",
        "email": "",
        "website": "",
        "social_links": {"instagram": "", "facebook": "", "linkedin": ""},
        "disclaimer_text": DEFAULT_DISCLAIMER,
    },
}

# --- Logos ---
LOGO_CONTENT_TYPES: List[str] = ["image/png", "image/jpeg", "image/jpg", "image/svg+xml"]
MAX_LOGO_BYTES = 2 * 1024 * 1024

# --- Records ---
PLAN_STATUSES: List[str] = ["draft", "final"]

MIN_CLIENT_AGE = 1
MAX_CLIENT_AGE = 120
