"""
MJML Email Templates
Wedding email layouts using MJML for responsive, cross-client compatibility
"""

from typing import Optional

# Style presets selectable per message/template
EMAIL_STYLES = {
    "elegant": {
        "name": "Elegant",
        "description": "Sophisticated design with serif fonts and pronounced borders",
        "header_bg": "#E8CF8F",
        "header_border": "2px solid #E3B13F",
        "title_font": "'Great Vibes', cursive",
        "title_color": "#442727",
        "content_bg": "#E9E7D9",
        "body_font": "'Lora', Georgia, serif",
        "line_height": "1.6",
        "button_bg": "#442727",
        "button_color": "#DAA520",
        "footer_bg": "#E8CF8F",
    },
    "modern": {
        "name": "Modern",
        "description": "Clean, minimalist design with sans-serif fonts",
        "header_bg": "#EAD9A8",
        "header_border": "1px solid #E3B13F",
        "title_font": "'Great Vibes', cursive",
        "title_color": "#442727",
        "content_bg": "#F1EFE8",
        "body_font": "'Open Sans', Arial, sans-serif",
        "line_height": "1.5",
        "button_bg": "#442727",
        "button_color": "#DAA520",
        "footer_bg": "#EAD9A8",
    },
    "friendly": {
        "name": "Friendly",
        "description": "Warm, approachable design with glass effects",
        "header_bg": "#EAD9A8",
        "header_border": "1px solid #E3B13F",
        "title_font": "'Great Vibes', cursive",
        "title_color": "#DAA520",
        "content_bg": "#E4DCCB",
        "body_font": "'Open Sans', Arial, sans-serif",
        "line_height": "1.6",
        "button_bg": "#442727",
        "button_color": "#DAA520",
        "footer_bg": "#EAD9A8",
    },
}

DEFAULT_STYLE = "elegant"

TRANSLATIONS = {
    "en": {
        "info_date": "Date",
        "info_location": "Location",
        "info_time": "Time",
        "rsvp_code": "Your RSVP Code",
        "signoff": "With love and joy,",
        "preheader": "We can't wait to celebrate with you",
        "disclaimer": "We will keep the emails to a minimum. Contact us if there are any questions.",
    },
    "lt": {
        "info_date": "Data",
        "info_location": "Vieta",
        "info_time": "Laikas",
        "rsvp_code": "RSVP Kodas",
        "signoff": "Su meile ir džiaugsmu,",
        "preheader": "Negalime laukti švęsti su jumis",
        "disclaimer": "El. laiškų bus kuo mažiau. Susisiekite su mumis, jei turite klausimų.",
    },
}


def get_style(style: Optional[str]) -> dict:
    return EMAIL_STYLES.get(style or DEFAULT_STYLE, EMAIL_STYLES[DEFAULT_STYLE])


def normalize_style(style: Optional[str]) -> str:
    return style if style in EMAIL_STYLES else DEFAULT_STYLE


def get_available_styles() -> list:
    return [
        {"key": key, "name": config["name"], "description": config["description"]}
        for key, config in EMAIL_STYLES.items()
    ]


def translate(key: str, language: str = "en") -> str:
    lang = "lt" if language == "lt" else "en"
    return TRANSLATIONS[lang].get(key, TRANSLATIONS["en"].get(key, key))


def info_card_section(
    theme: dict,
    language: str,
    date: Optional[str] = None,
    location: Optional[str] = None,
    time: Optional[str] = None,
) -> str:
    rows = []
    for label_key, value in (("info_date", date), ("info_location", location), ("info_time", time)):
        if value:
            rows.append(
                f"""
            <mj-text padding="4px 0" font-size="15px">
              <strong>{translate(label_key, language)}:</strong> {value}
            </mj-text>"""
            )
    if not rows:
        return ""
    return f"""
        <mj-section background-color="{theme['content_bg']}" padding="0 30px 20px 30px">
          <mj-column border="1px solid #DAA520" border-radius="8px" padding="12px 16px">
            {''.join(rows)}
          </mj-column>
        </mj-section>
        """


def rsvp_code_section(theme: dict, language: str, code: Optional[str]) -> str:
    if not code:
        return ""
    return f"""
        <mj-section background-color="{theme['content_bg']}" padding="0 30px 20px 30px">
          <mj-column>
            <mj-text align="center" font-size="13px" padding="0 0 4px 0">
              {translate('rsvp_code', language)}
            </mj-text>
            <mj-text align="center" font-size="24px" font-weight="700" letter-spacing="3px" color="#442727">
              {code}
            </mj-text>
          </mj-column>
        </mj-section>
        """


def get_base_template(
    content_html: str,
    style: Optional[str] = None,
    language: str = "en",
    title: Optional[str] = None,
    bride_name: Optional[str] = None,
    groom_name: Optional[str] = None,
    site_url: Optional[str] = None,
    button_text: Optional[str] = None,
    button_url: Optional[str] = None,
    info_date: Optional[str] = None,
    info_location: Optional[str] = None,
    info_time: Optional[str] = None,
    rsvp_code: Optional[str] = None,
) -> str:
    """Base MJML layout wrapper for every wedding email"""
    theme = get_style(style)
    couple = f"{bride_name} & {groom_name}" if bride_name and groom_name else None
    heading = title or couple or "Our Wedding"

    button_section = ""
    if button_text and button_url:
        button_section = f"""
        <mj-section background-color="{theme['content_bg']}" padding="0 30px 30px 30px">
          <mj-column>
            <mj-button
              href="{button_url}"
              background-color="{theme['button_bg']}"
              color="{theme['button_color']}"
              font-weight="600"
              border-radius="8px"
              padding="12px 24px"
              font-size="16px">
              {button_text}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    site_link = ""
    if site_url:
        site_link = f"""
            <mj-text align="center" font-size="14px" padding="8px 0 0 0">
              <a href="{site_url}" style="color: #DAA520; text-decoration: none;">{site_url}</a>
            </mj-text>"""

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{heading}</mj-title>
        <mj-preview>{translate('preheader', language)}</mj-preview>
        <mj-attributes>
          <mj-all font-family="{theme['body_font']}" />
          <mj-text font-size="16px" line-height="{theme['line_height']}" color="#442727" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="#F1EFE8">
        <mj-section background-color="{theme['header_bg']}" border="{theme['header_border']}" border-radius="12px 12px 0 0" padding="30px 25px">
          <mj-column>
            <mj-text align="center" font-family="{theme['title_font']}" font-size="42px" color="{theme['title_color']}">
              {heading}
            </mj-text>
          </mj-column>
        </mj-section>

        <mj-section background-color="{theme['content_bg']}" padding="40px 30px 20px 30px">
          <mj-column>
            <mj-text>
              {content_html}
            </mj-text>
          </mj-column>
        </mj-section>

        {info_card_section(theme, language, info_date, info_location, info_time)}
        {rsvp_code_section(theme, language, rsvp_code)}
        {button_section}

        <mj-section background-color="{theme['footer_bg']}" border="{theme['header_border']}" border-radius="0 0 12px 12px" padding="25px">
          <mj-column>
            <mj-text align="center" padding="0">
              {translate('signoff', language)}
            </mj-text>
            <mj-text align="center" font-weight="700" padding="6px 0 0 0">
              {couple or ''}
            </mj-text>
            {site_link}
            <mj-text align="center" font-size="12px" color="#6b5a4a" padding="12px 0 0 0">
              {translate('disclaimer', language)}
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def body_to_html(body: str) -> str:
    """Plain text bodies get paragraph breaks; HTML bodies pass through."""
    if "<" in body and ">" in body:
        return body
    paragraphs = [p.strip() for p in body.split("\n\n") if p.strip()]
    return "".join(f"<p>{p.replace(chr(10), '<br/>')}</p>" for p in paragraphs)
