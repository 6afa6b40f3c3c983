from datetime import datetime
from typing import Iterator, List, Literal, Optional, Union

from pydantic import BaseModel, Field, constr


# --- Parsed Plan Structure ---

class MealRow(BaseModel):
    meal: str
    foods: str
    portions: str = ""
    notes: str = ""


class Heading(BaseModel):
    type: Literal["heading"] = "heading"
    title: str


class MealTable(BaseModel):
    type: Literal["meal_table"] = "meal_table"
    rows: List[MealRow] = Field(default_factory=list)

    @property
    def has_notes(self) -> bool:
        return any(row.notes for row in self.rows)


class BulletList(BaseModel):
    type: Literal["bullet_list"] = "bullet_list"
    items: List[str] = Field(default_factory=list)


class TextBlock(BaseModel):
    type: Literal["text"] = "text"
    paragraphs: List[str] = Field(default_factory=list)


PlanBlock = Union[Heading, MealTable, BulletList, TextBlock]


class PlanSection(BaseModel):
    """One section of a parsed plan.

    Holds at most one meal table and one bullet list; a later flush into the
    same section replaces the earlier one.
    """
    kind: Literal["heading", "text"]
    title: Optional[str] = None
    paragraphs: List[str] = Field(default_factory=list)
    meal_table: Optional[MealTable] = None
    bullet_list: Optional[BulletList] = None

    def blocks(self) -> Iterator[PlanBlock]:
        """Yield the section's blocks in render order."""
        if self.title:
            yield Heading(title=self.title)
        if self.meal_table and self.meal_table.rows:
            yield self.meal_table
        if self.bullet_list and self.bullet_list.items:
            yield self.bullet_list
        if self.paragraphs:
            yield TextBlock(paragraphs=list(self.paragraphs))


class ParseRequest(BaseModel):
    content: Optional[str] = Field(default=None, description="Raw plan text to structure")


class ParseResponse(BaseModel):
    sections: List[PlanSection]
    entry_count: int


# --- Clients ---

class ClientProfile(BaseModel):
    full_name: str = ""
    age: Optional[str] = None
    gender: Optional[str] = None
    height: Optional[str] = None
    weight: Optional[str] = None
    medical_conditions: List[str] = Field(default_factory=list)
    allergies: List[str] = Field(default_factory=list)
    goals: Optional[str] = None
    notes: str = ""


class ClientUpdate(BaseModel):
    full_name: Optional[str] = None
    age: Optional[str] = None
    gender: Optional[str] = None
    height: Optional[str] = None
    weight: Optional[str] = None
    medical_conditions: Optional[List[str]] = None
    allergies: Optional[List[str]] = None
    goals: Optional[str] = None
    notes: Optional[str] = None


class Client(ClientProfile):
    id: str
    dietitian_id: str
    created_at: datetime
    updated_at: datetime


# --- Diet Plans ---

class DietPlanCreate(BaseModel):
    client_id: constr(strip_whitespace=True, min_length=1)
    title: str = ""
    raw_input: str = ""
    generated_plan: Optional[str] = None
    status: Literal["draft", "final"] = "draft"
    notes: str = ""


class DietPlanUpdate(BaseModel):
    title: Optional[str] = None
    raw_input: Optional[str] = None
    generated_plan: Optional[str] = None
    status: Optional[Literal["draft", "final"]] = None
    notes: Optional[str] = None


class DietPlan(BaseModel):
    id: str
    dietitian_id: str
    client_id: str
    title: str = ""
    raw_input: str = ""
    generated_plan: Optional[str] = None
    status: str = "draft"
    notes: str = ""
    created_at: datetime
    updated_at: datetime


# --- Generation ---

class GeneratePlanRequest(BaseModel):
    client_id: Optional[str] = Field(default=None, description="Stored client to plan for")
    client: Optional[ClientProfile] = Field(default=None, description="Inline client profile")
    raw_input: str = Field(default="", description="Dietitian notes passed to the generator")
    title: str = ""
    save: bool = Field(default=True, description="Persist the plan when a stored client is used")


class GeneratePlanResponse(BaseModel):
    plan_id: Optional[str] = None
    generated_plan: str
    sections: List[PlanSection]
    remaining: int
    limit: int


# --- Usage ---

class UsageDecision(BaseModel):
    allowed: bool
    remaining: int
    limit: int
    date: str
    message: Optional[str] = None


class UsageSummary(BaseModel):
    date: str
    generations_used: int
    limit: int
    remaining: int


# --- Branding & Profiles ---

HEX_COLOR_PATTERN = r"^#[0-9a-fA-F]{3,8}$"
HexColor = constr(pattern=HEX_COLOR_PATTERN)
FontFamily = Literal[
    "Inter",
    "Roboto",
    "Open Sans",
    "Lato",
    "Montserrat",
    "Poppins",
    "Merriweather",
    "Playfair Display",
]


class HeaderSettings(BaseModel):
    show_logo: bool = True
    logo_alignment: Literal["left", "center", "right"] = "left"
    show_business_name: bool = True


class SocialLinks(BaseModel):
    instagram: str = ""
    facebook: str = ""
    linkedin: str = ""


class FooterSettings(BaseModel):
    phone: str = ""
    email: str = ""
    website: str = ""
    social_links: SocialLinks = Field(default_factory=SocialLinks)
    disclaimer_text: str = ""


class BrandingSettings(BaseModel):
    business_name: str = ""
    tagline: str = ""
    logo_url: str = ""
    primary_color: HexColor = "#22c55e"
    secondary_color: HexColor = "#16a34a"
    font_family: FontFamily = "Inter"
    header: HeaderSettings = Field(default_factory=HeaderSettings)
    footer: FooterSettings = Field(default_factory=FooterSettings)


class UserProfileCreate(BaseModel):
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None


class UserProfileUpdate(BaseModel):
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    subscription_status: Optional[str] = None


class UserProfile(BaseModel):
    id: str
    email: Optional[str] = None
    display_name: str
    photo_url: Optional[str] = None
    role: str = "dietitian"
    onboarding_completed: bool = False
    plan_export_count: int = 0
    subscription_status: str = "free"
    created_at: datetime
    updated_at: datetime
