from django import template

register = template.Library()

UNANSWERED = "Unanswered"


@register.filter
def answer_display(value) -> str:
    """
    Render a stored answer value for display.
    Multiple selections are joined with commas; a missing answer reads as 'Unanswered'.
    """
    if value is None or value == "" or value == []:
        return UNANSWERED
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    return str(value)
