from typing import List, Optional

from jinja2 import Environment

from dietcraft.models import BrandingSettings, PlanSection
from dietcraft.services.branding_service import default_branding

NO_CONTENT_MESSAGE = "No plan content available"

SECTIONS_TEMPLATE = """\
{%- if not sections -%}
<div class="plan-empty">{{ no_content }}</div>
{%- else -%}
<div class="formatted-plan">
{%- for section in sections %}
<div class="section">
{%- for part in section.blocks() %}
{%- if part.type == "heading" %}
<h3>{{ part.title }}</h3>
{%- elif part.type == "meal_table" %}
<table class="meal-table">
<thead><tr><th>Meal</th><th>Foods</th><th>Portions</th>{% if part.has_notes %}<th>Notes</th>{% endif %}</tr></thead>
<tbody>
{%- for row in part.rows %}
<tr><td>{{ row.meal }}</td><td>{{ row.foods }}</td><td>{{ row.portions }}</td>{% if part.has_notes %}<td>{{ row.notes }}</td>{% endif %}</tr>
{%- endfor %}
</tbody>
</table>
{%- elif part.type == "bullet_list" %}
<ul>
{%- for item in part.items %}
<li>{{ item }}</li>
{%- endfor %}
</ul>
{%- else %}
{%- for paragraph in part.paragraphs %}
<p>{{ paragraph }}</p>
{%- endfor %}
{%- endif %}
{%- endfor %}
</div>
{%- endfor %}
</div>
{%- endif %}
"""

DOCUMENT_TEMPLATE = """\
<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{{ title or "Nutrition Plan" }}</title>
<style>
body { font-family: {{ branding.font_family }}, sans-serif; color: #000; background: #fff; margin: 2rem; }
.plan-header { border-bottom: 3px solid {{ branding.primary_color }}; padding-bottom: 1rem; text-align: {{ branding.header.logo_alignment }}; }
.plan-header .tagline { color: {{ branding.secondary_color }}; }
h3 { border-bottom: 2px solid #d1d5db; padding-bottom: 0.4rem; }
table { border-collapse: collapse; width: 100%; margin-bottom: 1rem; }
th, td { border: 1px solid #d1d5db; padding: 0.4rem 0.8rem; text-align: left; }
th { background: #f3f4f6; }
.plan-footer { border-top: 1px solid {{ branding.primary_color }}; margin-top: 2rem; padding-top: 1rem; font-size: 0.85em; }
@media print { table, .section { page-break-inside: avoid; } h3 { page-break-after: avoid; } }
</style>
</head>
<body>
<div class="plan-header">
{%- if branding.header.show_logo and branding.logo_url %}
<img src="{{ branding.logo_url }}" alt="logo" height="64">
{%- endif %}
{%- if branding.header.show_business_name and branding.business_name %}
<h1>{{ branding.business_name }}</h1>
{%- endif %}
{%- if branding.tagline %}
<div class="tagline">{{ branding.tagline }}</div>
{%- endif %}
</div>
{%- if title %}
<h2>{{ title }}</h2>
{%- endif %}
{%- if client_name %}
<p class="client">Prepared for: {{ client_name }}</p>
{%- endif %}
{{ body | safe }}
<div class="plan-footer">
{%- for value in contacts %}
<span>{{ value }}</span>
{%- endfor %}
{%- if branding.footer.disclaimer_text %}
<p class="disclaimer">{{ branding.footer.disclaimer_text }}</p>
{%- endif %}
</div>
</body>
</html>
"""


class PlanRenderer:
    def __init__(self) -> None:
        self.env = Environment(autoescape=True)
        self.sections_template = self.env.from_string(SECTIONS_TEMPLATE)
        self.document_template = self.env.from_string(DOCUMENT_TEMPLATE)

    def render_sections(self, sections: List[PlanSection]) -> str:
        """HTML fragment for parsed sections, or the no-content placeholder."""
        return self.sections_template.render(sections=sections, no_content=NO_CONTENT_MESSAGE)

    def render_document(
        self,
        sections: List[PlanSection],
        branding: Optional[BrandingSettings] = None,
        title: Optional[str] = None,
        client_name: Optional[str] = None
    ) -> str:
        """Printable branded HTML page around the rendered sections."""
        branding = branding or default_branding()
        footer = branding.footer
        contacts = [value for value in (footer.phone, footer.email, footer.website) if value]
        return self.document_template.render(
            branding=branding,
            title=title,
            client_name=client_name,
            contacts=contacts,
            body=self.render_sections(sections)
        )


plan_renderer = PlanRenderer()
