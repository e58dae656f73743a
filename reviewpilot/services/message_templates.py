"""
Message template lookup (language x tone).

Templates are fixed copy with the business name and review link substituted.
The {firstName} placeholder is kept and filled per customer at send time.
"""
from string import Template
from types import MappingProxyType
from typing import Mapping

from reviewpilot.schemas.review_requests import (
    Campaign,
    EmailTemplate,
    Language,
    MessageTemplate,
    MessageVariant,
    ToneStyle,
)

BILINGUAL_GREETING = "¡Hola {firstName}! / Hi {firstName}!"
ENGLISH_GREETING = "Hi {firstName}!"

_EN_STOP = "Reply STOP to opt out."
_ES_STOP = "Responde STOP para cancelar."

# (sms_short, sms_standard, email_subject, email_body, follow_up_sms)
_TEMPLATES: Mapping[Language, Mapping[ToneStyle, tuple]] = MappingProxyType({
    Language.ENGLISH: MappingProxyType({
        ToneStyle.FRIENDLY: (
            f"Hi {{firstName}}! Thanks for choosing $business. We'd love your feedback: $link {_EN_STOP}",
            f"Hi {{firstName}}! We hope you had a great experience with $business. Your feedback means the world to us. Please leave a review: $link {_EN_STOP}",
            "How was your experience with $business?",
            "Hi {firstName},\n\nThank you for choosing $business! We hope you had a wonderful experience.\n\n"
            "Your feedback helps us serve you better and helps other customers find us. "
            "Would you mind taking a moment to leave a review?\n\n$link\n\nThank you so much!\n\nThe $business Team",
            f"Hi {{firstName}}, just a friendly reminder - we'd love your feedback about $business: $link {_EN_STOP}",
        ),
        ToneStyle.PROFESSIONAL: (
            f"Thank you for choosing $business. We value your feedback: $link {_EN_STOP}",
            f"Thank you for your business with $business. We'd appreciate your feedback on your experience. Please leave a review: $link {_EN_STOP}",
            "Feedback Request: $business",
            "Dear {firstName},\n\nThank you for choosing $business. We value your opinion and would appreciate "
            "your feedback on your recent experience.\n\nPlease take a moment to share your review:\n\n$link\n\n"
            "Your feedback helps us improve our services.\n\nBest regards,\nThe $business Team",
            f"Reminder: We'd appreciate your feedback about $business: $link {_EN_STOP}",
        ),
        ToneStyle.BOLD: (
            f"Hey {{firstName}}! Loved your visit to $business? Tell the world: $link {_EN_STOP}",
            f"Hey {{firstName}}! We're proud of the service we provided at $business. Help us spread the word by leaving a review: $link {_EN_STOP}",
            "Share Your Experience with $business",
            "Hey {firstName},\n\nYou just experienced $business at our best. Now it's your turn to share!\n\n"
            "Leave us a review and help others discover what makes us special:\n\n$link\n\n"
            "Let's show the world what $business is all about!\n\nThanks,\nThe $business Team",
            f"Hey {{firstName}}! Don't forget to share your $business experience: $link {_EN_STOP}",
        ),
        ToneStyle.LUXURY: (
            f"Dear {{firstName}}, we hope you enjoyed your experience with $business. We'd be honored by your review: $link {_EN_STOP}",
            f"Dear {{firstName}}, thank you for choosing $business. Your satisfaction is our priority. We'd be delighted to receive your feedback: $link {_EN_STOP}",
            "Your Experience with $business",
            "Dear {firstName},\n\nIt was our pleasure to serve you at $business. We hope your experience exceeded "
            "your expectations.\n\nWe would be honored if you would take a moment to share your thoughts:\n\n$link\n\n"
            "Your feedback is invaluable to us as we continue to provide exceptional service.\n\n"
            "With gratitude,\nThe $business Team",
            f"Dear {{firstName}}, a gentle reminder - we'd be honored by your feedback about $business: $link {_EN_STOP}",
        ),
    }),
    Language.SPANISH: MappingProxyType({
        ToneStyle.FRIENDLY: (
            f"¡Hola {{firstName}}! Gracias por elegir $business. Nos encantaría tu opinión: $link {_ES_STOP}",
            f"¡Hola {{firstName}}! Esperamos que hayas tenido una excelente experiencia con $business. Tu opinión significa mucho para nosotros. Por favor deja una reseña: $link {_ES_STOP}",
            "¿Cómo fue tu experiencia con $business?",
            "Hola {firstName},\n\n¡Gracias por elegir $business! Esperamos que hayas tenido una experiencia maravillosa.\n\n"
            "Tu opinión nos ayuda a servirte mejor y ayuda a otros clientes a encontrarnos. "
            "¿Te importaría tomar un momento para dejar una reseña?\n\n$link\n\n¡Muchas gracias!\n\nEl equipo de $business",
            f"Hola {{firstName}}, solo un recordatorio amigable - nos encantaría tu opinión sobre $business: $link {_ES_STOP}",
        ),
        ToneStyle.PROFESSIONAL: (
            f"Gracias por elegir $business. Valoramos tu opinión: $link {_ES_STOP}",
            f"Gracias por tu negocio con $business. Apreciaríamos tu opinión sobre tu experiencia. Por favor deja una reseña: $link {_ES_STOP}",
            "Solicitud de Opinión: $business",
            "Estimado/a {firstName},\n\nGracias por elegir $business. Valoramos tu opinión y apreciaríamos tu "
            "comentario sobre tu experiencia reciente.\n\nPor favor toma un momento para compartir tu reseña:\n\n$link\n\n"
            "Tu opinión nos ayuda a mejorar nuestros servicios.\n\nSaludos cordiales,\nEl equipo de $business",
            f"Recordatorio: Apreciaríamos tu opinión sobre $business: $link {_ES_STOP}",
        ),
        ToneStyle.BOLD: (
            f"¡Hola {{firstName}}! ¿Te encantó tu visita a $business? Cuéntale al mundo: $link {_ES_STOP}",
            f"¡Hola {{firstName}}! Estamos orgullosos del servicio que brindamos en $business. Ayúdanos a correr la voz dejando una reseña: $link {_ES_STOP}",
            "Comparte Tu Experiencia con $business",
            "Hola {firstName},\n\nAcabas de experimentar $business en nuestro mejor momento. ¡Ahora es tu turno de compartir!\n\n"
            "Déjanos una reseña y ayuda a otros a descubrir lo que nos hace especiales:\n\n$link\n\n"
            "¡Mostremos al mundo de qué se trata $business!\n\nGracias,\nEl equipo de $business",
            f"¡Hola {{firstName}}! No olvides compartir tu experiencia con $business: $link {_ES_STOP}",
        ),
        ToneStyle.LUXURY: (
            f"Estimado/a {{firstName}}, esperamos que hayas disfrutado tu experiencia con $business. Nos honraría tu reseña: $link {_ES_STOP}",
            f"Estimado/a {{firstName}}, gracias por elegir $business. Tu satisfacción es nuestra prioridad. Estaríamos encantados de recibir tu opinión: $link {_ES_STOP}",
            "Tu Experiencia con $business",
            "Estimado/a {firstName},\n\nFue un placer servirte en $business. Esperamos que tu experiencia haya superado "
            "tus expectativas.\n\nNos honraría si tomaras un momento para compartir tus pensamientos:\n\n$link\n\n"
            "Tu opinión es invaluable para nosotros mientras continuamos brindando un servicio excepcional.\n\n"
            "Con gratitud,\nEl equipo de $business",
            f"Estimado/a {{firstName}}, un recordatorio amable - nos honraría tu opinión sobre $business: $link {_ES_STOP}",
        ),
    }),
})


def _fill(text: str, campaign: Campaign) -> str:
    return Template(text).safe_substitute(business=campaign.business_name, link=campaign.review_link)


def _bilingual_sms(text: str) -> str:
    return f"{BILINGUAL_GREETING} {text.replace(ENGLISH_GREETING, '', 1)}"


def generate_message_templates(campaign: Campaign) -> MessageTemplate:
    """Deterministic template set for the campaign's language, tone and brand voice."""
    language_key = Language.SPANISH if campaign.language == Language.SPANISH else Language.ENGLISH
    sms_short, sms_standard, subject, body, follow_up = (
        _fill(text, campaign) for text in _TEMPLATES[language_key][campaign.tone_style]
    )

    if campaign.brand_voice and campaign.brand_voice.strip():
        brand_note = f"\n\nNote: {campaign.brand_voice}"
        sms_short += brand_note[:50]
        sms_standard += brand_note[:100]
        body += brand_note
        follow_up += brand_note[:50]

    if campaign.language == Language.BILINGUAL:
        sms_short = _bilingual_sms(sms_short)
        sms_standard = _bilingual_sms(sms_standard)
        body = f"{BILINGUAL_GREETING}\n\n{body}"
        follow_up = _bilingual_sms(follow_up)

    return MessageTemplate(
        sms_short=sms_short,
        sms_standard=sms_standard,
        email=EmailTemplate(subject=subject, body=body),
        follow_up_sms=follow_up,
    )


def render_message(text: str, customer_name: str) -> str:
    """Personalise a template with the customer's first name."""
    name = customer_name.strip()
    first_name = name.split()[0] if name.split() else name
    return text.replace("{firstName}", first_name)


def personalize_message(templates: MessageTemplate, variant: MessageVariant, customer_name: str) -> str:
    """Ready-to-send text for one customer; email is rendered as a subject line plus body."""
    if variant == MessageVariant.EMAIL:
        subject = render_message(templates.email.subject, customer_name)
        body = render_message(templates.email.body, customer_name)
        return f"Subject: {subject}\n\n{body}"
    text = {
        MessageVariant.SMS_SHORT: templates.sms_short,
        MessageVariant.SMS_STANDARD: templates.sms_standard,
        MessageVariant.FOLLOW_UP_SMS: templates.follow_up_sms,
    }[variant]
    return render_message(text, customer_name)
