import unittest
from datetime import datetime

from actionagent.router.intent_router import Intent
from actionagent.services.manual_extraction import (
    DEFAULT_EVENT_TITLE,
    extract_email_params,
    extract_event_params,
    extract_event_title,
    extract_manually,
    extract_recipient,
)
from actionagent.services.validation import DEFAULT_SUBJECT, PLACEHOLDER_RECIPIENT
from actionagent.tools.base import EmailParams

NOW = datetime(2025, 6, 4, 15, 30)


class ManualEmailExtractionTests(unittest.TestCase):
    def test_recipient_subject_and_body_markers(self):
        params = extract_email_params(
            "Envía un correo a ana@x.com con asunto 'Hola' diciendo que llego tarde"
        )
        self.assertEqual(
            params,
            EmailParams(to=("ana@x.com",), subject="Hola", body="Llego tarde"),
        )

    def test_body_is_remaining_text_without_marker(self):
        params = extract_email_params(
            "Envía un correo a ana@x.com con asunto Reunión. Mañana llego a las 10"
        )
        self.assertEqual(params.subject, "Reunión")
        self.assertEqual(params.body, "Mañana llego a las 10")

    def test_missing_recipient_uses_placeholder(self):
        params = extract_email_params("Manda un correo a Pedro diciendo que mañana no puedo")
        self.assertEqual(params.to, (PLACEHOLDER_RECIPIENT,))
        self.assertEqual(params.subject, DEFAULT_SUBJECT)
        self.assertEqual(params.body, "Mañana no puedo")

    def test_farewell_request_gets_farewell_defaults(self):
        params = extract_email_params("Envía un correo de despedida a ana@x.com")
        self.assertEqual(params.subject, "Adiós")
        self.assertEqual(params.body, "Adiós.")

    def test_recipient_after_preposition_wins(self):
        self.assertEqual(
            extract_recipient("Desde yo@casa.com envía un correo para Luis@Empresa.es"),
            "luis@empresa.es",
        )
        self.assertEqual(extract_recipient("sin dirección"), "")


class ManualEventExtractionTests(unittest.TestCase):
    def test_quoted_title_date_and_location(self):
        params = extract_event_params(
            'Crea un evento titulado "Demo cliente" mañana a las 11 en la ubicación: Oficina central',
            NOW,
        )
        self.assertEqual(params.summary, "Demo cliente")
        self.assertEqual(params.start, datetime(2025, 6, 5, 11, 0))
        self.assertEqual(params.end, datetime(2025, 6, 5, 12, 0))
        self.assertEqual(params.location, "Oficina central")

    def test_unquoted_title_is_cut_before_date_words(self):
        params = extract_event_params("Agenda una reunión sobre presupuesto para el viernes", NOW)
        self.assertEqual(params.summary, "Presupuesto")
        self.assertEqual(params.start, datetime(2025, 6, 6, 10, 0))

    def test_passed_hour_without_day_is_scheduled_tomorrow(self):
        params = extract_manually(
            Intent.CREATE_EVENT,
            "Crea una reunión titulada 'Sync' a las 9",
            NOW,
        )
        self.assertEqual(params.summary, "Sync")
        self.assertGreater(params.start, NOW)
        self.assertEqual(params.start, datetime(2025, 6, 5, 9, 0))

    def test_later_hour_today_stays_today(self):
        params = extract_event_params("Crea una reunión a las 6 de la tarde", NOW)
        self.assertEqual(params.start, datetime(2025, 6, 4, 18, 0))

    def test_defaults_without_title_or_date(self):
        params = extract_event_params("Crea un evento", NOW)
        self.assertEqual(params.summary, DEFAULT_EVENT_TITLE)
        self.assertEqual(params.start, datetime(2025, 6, 4, 16, 0))
        self.assertEqual(params.end, datetime(2025, 6, 4, 17, 0))
        self.assertIsNone(params.location)

    def test_event_title_absent(self):
        self.assertEqual(extract_event_title("Crea un evento mañana"), "")

    def test_extract_manually_dispatches_on_intent(self):
        self.assertIsInstance(
            extract_manually(Intent.SEND_MESSAGE, "Envía un correo a ana@x.com", NOW),
            EmailParams,
        )
        with self.assertRaises(ValueError):
            extract_manually(Intent.NONE, "hola", NOW)


if __name__ == "__main__":
    unittest.main()
