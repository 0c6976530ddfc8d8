import re
import unittest
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs

from backend.models.common import QRCodeType
from backend.models.intents import LocationIntent, PhoneIntent, WifiIntent
from backend.services.payload_encoder import (
    SOCIAL_PROFILE_URLS,
    encode,
    encode_intent,
    escape_text_value,
    escape_wifi_value,
    format_utc_basic,
    parse_intent,
    quote_component,
)

UTC_BASIC = re.compile(r"^\d{8}T\d{6}Z$")


def _query(payload: str) -> dict:
    return parse_qs(payload.split("?", 1)[1], keep_blank_values=True)


class TestSimpleKinds(unittest.TestCase):
    def test_website_is_identity(self):
        for s in ["https://example.com", "", "example.com/a?b=c&d=e", "https://ünï.example/päth", "  spaced  "]:
            self.assertEqual(encode(QRCodeType.url, {"url": s}), s)

    def test_app_and_file_carry_their_url(self):
        self.assertEqual(encode("app", {"url": "https://apps.apple.com/app/id1"}), "https://apps.apple.com/app/id1")
        self.assertEqual(encode("file", {"url": "https://cdn.example/menu.pdf"}), "https://cdn.example/menu.pdf")

    def test_phone(self):
        self.assertEqual(encode(QRCodeType.phone, {"phone": "+1-555-0100"}), "tel:+1-555-0100")

    def test_phone_number_given_as_int(self):
        self.assertEqual(encode("phone", {"phone": 5550100}), "tel:5550100")

    def test_sms_message_is_percent_encoded(self):
        out = encode(QRCodeType.sms, {"number": "+15550100", "message": "Hello world & bye"})
        self.assertEqual(out, "sms:+15550100?body=Hello%20world%20%26%20bye")
        self.assertEqual(_query(out)["body"], ["Hello world & bye"])


class TestEmail(unittest.TestCase):
    def test_subject_with_space_and_ampersand_is_escaped(self):
        out = encode(QRCodeType.email, {"to": "a@example.com", "subject": "Q&A session", "body": "See you"})
        self.assertEqual(out, "mailto:a@example.com?subject=Q%26A%20session&body=See%20you")

    def test_query_decodes_back_to_original_text(self):
        subject = "Tom & Jerry: 100% fun? yes/no +1"
        body = "line one\nline two = ok"
        out = encode("email", {"to": "x@y.z", "subject": subject, "body": body})
        q = _query(out)
        self.assertEqual(q["subject"], [subject])
        self.assertEqual(q["body"], [body])

    def test_empty_email(self):
        self.assertEqual(encode("email", {}), "mailto:?subject=&body=")

    def test_lone_surrogate_is_percent_encoded(self):
        out = encode("email", {"to": "a@b.c", "subject": "\ud800"})
        self.assertEqual(out, "mailto:a@b.c?subject=%ED%A0%80&body=")

    def test_uri_component_safe_set(self):
        self.assertEqual(quote_component("a/b!*'()~-_."), "a%2Fb!*'()~-_.")


class TestWifi(unittest.TestCase):
    def test_basic_network(self):
        out = encode(QRCodeType.wifi, {"ssid": "Home", "password": "secret1", "security": "WPA", "hidden": False})
        self.assertEqual(out, "WIFI:T:WPA;S:Home;P:secret1;H:false;;")

    def test_hidden_flag_and_nopass(self):
        out = encode("wifi", {"ssid": "Guest", "security": "nopass", "hidden": True})
        self.assertEqual(out, "WIFI:T:nopass;S:Guest;P:;H:true;;")

    def test_security_normalization(self):
        self.assertEqual(parse_intent("wifi", {"security": "wep"}).security.value, "WEP")
        self.assertEqual(parse_intent("wifi", {"security": "WPA2"}).security.value, "WPA")
        self.assertEqual(parse_intent("wifi", {"security": "NOPASS"}).security.value, "nopass")
        self.assertEqual(parse_intent("wifi", {}).security.value, "WPA")

    def test_delimiters_are_escaped(self):
        out = encode("wifi", {"ssid": 'Cafe;Bar,"1"', "password": "a:b\\c"})
        self.assertEqual(out, 'WIFI:T:WPA;S:Cafe\\;Bar\\,\\"1\\";P:a\\:b\\\\c;H:false;;')

    def test_escape_helper(self):
        self.assertEqual(escape_wifi_value("plain"), "plain")
        self.assertEqual(escape_wifi_value(";,:"), "\\;\\,\\:")

    def test_unparseable_hidden_flag_is_treated_as_unset(self):
        out = encode("wifi", {"ssid": "Home", "hidden": "maybe"})
        self.assertEqual(out, "WIFI:T:WPA;S:Home;P:;H:false;;")


class TestVCard(unittest.TestCase):
    FULL = {
        "firstName": "Ada",
        "lastName": "Lovelace",
        "company": "Analytical Engines",
        "jobTitle": "Programmer",
        "phone": "+44 20 7946 0000",
        "email": "ada@example.com",
        "website": "https://ada.example",
        "address": "12 St James Square",
    }

    def test_full_card(self):
        expected = "\n".join([
            "BEGIN:VCARD",
            "VERSION:3.0",
            "FN:Ada Lovelace",
            "ORG:Analytical Engines",
            "TITLE:Programmer",
            "TEL:+44 20 7946 0000",
            "EMAIL:ada@example.com",
            "URL:https://ada.example",
            "ADR:;;12 St James Square;;;;",
            "END:VCARD",
        ])
        self.assertEqual(encode(QRCodeType.vcard, self.FULL), expected)

    def test_envelope_holds_for_any_subset(self):
        keys = list(self.FULL)
        for i in range(len(keys) + 1):
            fields = {k: self.FULL[k] for k in keys[:i]}
            lines = encode("vcard", fields).split("\n")
            self.assertEqual(lines.count("BEGIN:VCARD"), 1)
            self.assertEqual(lines.count("END:VCARD"), 1)
            self.assertEqual(lines[0], "BEGIN:VCARD")
            self.assertEqual(lines[1], "VERSION:3.0")
            self.assertEqual(lines[-1], "END:VCARD")
            self.assertEqual(len(lines), 10)

    def test_name_with_only_last_name(self):
        self.assertIn("\nFN:Lovelace\n", encode("vcard", {"lastName": "Lovelace"}))

    def test_snake_case_field_names(self):
        self.assertIn("\nFN:Ada\n", encode("vcard", {"first_name": "Ada"}))

    def test_structured_characters_are_escaped(self):
        out = encode("vcard", {"company": "Smith, Jones; Co", "address": "1 Main St\nSpringfield"})
        lines = out.split("\n")
        self.assertEqual(len(lines), 10)
        self.assertIn("ORG:Smith\\, Jones\\; Co", lines)
        self.assertIn("ADR:;;1 Main St\\nSpringfield;;;;", lines)

    def test_uri_properties_are_not_text_escaped(self):
        out = encode("vcard", {"phone": "+1;ext=2", "email": "a,b@example.com", "website": "https://x.example/a,b;c\nd"})
        lines = out.split("\n")
        self.assertEqual(len(lines), 10)
        self.assertIn("TEL:+1;ext=2", lines)
        self.assertIn("EMAIL:a,b@example.com", lines)
        self.assertIn("URL:https://x.example/a,b;cd", lines)

    def test_text_escape_helper(self):
        self.assertEqual(escape_text_value("a\\b"), "a\\\\b")
        self.assertEqual(escape_text_value("x\r\ny"), "x\\ny")


class TestSocial(unittest.TestCase):
    def test_every_platform(self):
        expected = {
            "instagram": "https://instagram.com/jane",
            "twitter": "https://twitter.com/jane",
            "linkedin": "https://linkedin.com/in/jane",
            "facebook": "https://facebook.com/jane",
            "tiktok": "https://tiktok.com/@jane",
            "youtube": "https://youtube.com/@jane",
        }
        self.assertEqual(set(SOCIAL_PROFILE_URLS), set(expected))
        for platform, url in expected.items():
            self.assertEqual(encode("social", {"platform": platform, "username": "jane"}), url)

    def test_leading_at_and_case(self):
        self.assertEqual(encode("social", {"platform": "TikTok", "username": "@jane"}), "https://tiktok.com/@jane")

    def test_unknown_platform_falls_back_to_url(self):
        self.assertEqual(encode("social", {"platform": "mastodon", "username": "jane", "url": "https://m.example/@jane"}),
                         "https://m.example/@jane")
        self.assertEqual(encode("social", {"platform": "mastodon", "username": "jane"}), "")

    def test_table_is_read_only(self):
        with self.assertRaises(TypeError):
            SOCIAL_PROFILE_URLS["myspace"] = "https://myspace.com/{username}"


class TestCalendar(unittest.TestCase):
    def _line(self, payload, prefix):
        return next(line for line in payload.split("\n") if line.startswith(prefix))

    def test_utc_input(self):
        out = encode(QRCodeType.calendar, {
            "eventTitle": "Standup",
            "startDate": "2025-06-01T09:00+00:00",
            "endDate": "2025-06-01T10:00Z",
            "location": "Room 1",
        })
        expected = "\n".join([
            "BEGIN:VCALENDAR",
            "VERSION:2.0",
            "BEGIN:VEVENT",
            "SUMMARY:Standup",
            "DTSTART:20250601T090000Z",
            "DTEND:20250601T100000Z",
            "LOCATION:Room 1",
            "END:VEVENT",
            "END:VCALENDAR",
        ])
        self.assertEqual(out, expected)

    def test_local_input_matches_utc_basic_pattern(self):
        out = encode("calendar", {"startDate": "2025-06-01T09:00", "endDate": "2025-06-01T10:00"})
        self.assertRegex(self._line(out, "DTSTART:")[len("DTSTART:"):], UTC_BASIC)
        self.assertRegex(self._line(out, "DTEND:")[len("DTEND:"):], UTC_BASIC)

    def test_offset_is_converted(self):
        self.assertEqual(format_utc_basic("2025-06-01T09:00+02:00"), "20250601T070000Z")
        aware = datetime(2025, 12, 31, 23, 30, tzinfo=timezone(timedelta(hours=-1)))
        self.assertEqual(format_utc_basic(aware), "20260101T003000Z")

    def test_missing_or_bad_timestamps_are_blank(self):
        out = encode("calendar", {"eventTitle": "TBD", "startDate": "next tuesday"})
        self.assertIn("\nDTSTART:\n", out)
        self.assertIn("\nDTEND:\n", out)
        self.assertEqual(format_utc_basic(None), "")
        self.assertEqual(format_utc_basic(""), "")

    def test_summary_is_escaped(self):
        out = encode("calendar", {"eventTitle": "Lunch; then, talks"})
        self.assertIn("\nSUMMARY:Lunch\\; then\\, talks\n", out)


class TestLocation(unittest.TestCase):
    def test_coordinates(self):
        out = encode(QRCodeType.location, {"latitude": 37.7749, "longitude": -122.4194})
        self.assertEqual(out, "geo:37.7749,-122.4194")

    def test_integral_and_string_coordinates(self):
        self.assertEqual(encode("location", {"latitude": 10, "longitude": "20"}), "geo:10,20")
        self.assertEqual(encode("location", {"latitude": "51.5", "longitude": "-0.12"}), "geo:51.5,-0.12")

    def test_missing_coordinate_gives_empty_payload(self):
        self.assertEqual(encode("location", {"latitude": 37.7749}), "")
        self.assertEqual(encode("location", {}), "")
        self.assertNotIn("undefined", encode("location", {"longitude": 1.5}))

    def test_small_magnitudes_stay_decimal(self):
        self.assertEqual(encode("location", {"latitude": 0.00005, "longitude": 51.5}), "geo:0.00005,51.5")
        self.assertEqual(encode("location", {"latitude": -1e-7, "longitude": 0.5}), "geo:-0.0000001,0.5")

    def test_out_of_range_or_garbage_is_dropped(self):
        self.assertEqual(encode("location", {"latitude": 91, "longitude": 0}), "")
        self.assertEqual(encode("location", {"latitude": "north", "longitude": 0}), "")


class TestRouting(unittest.TestCase):
    def test_foreign_fields_are_ignored(self):
        noisy = {"phone": "123", "url": "https://x", "firstName": "Ada", "ssid": "Home", "latitude": 1}
        self.assertEqual(encode("phone", noisy), "tel:123")
        self.assertEqual(encode("wifi", noisy), encode("wifi", {"ssid": "Home"}))

    def test_unknown_kind(self):
        self.assertEqual(encode("hologram", {"url": "https://x"}), "https://x")
        self.assertEqual(encode("hologram", {}), "")
        self.assertEqual(encode(None, None), "")
        with self.assertRaises(ValueError):
            parse_intent("hologram", {})

    def test_kind_string_is_case_insensitive(self):
        self.assertEqual(encode("PHONE", {"phone": "1"}), "tel:1")

    def test_typed_intent(self):
        self.assertEqual(encode_intent(PhoneIntent(phone="1")), "tel:1")
        self.assertEqual(encode(QRCodeType.phone, PhoneIntent(phone="1")), "tel:1")
        self.assertEqual(encode(None, LocationIntent(latitude=1.5, longitude=2)), "geo:1.5,2")

    def test_typed_intent_for_another_kind_is_reparsed(self):
        wifi = WifiIntent(ssid="Home")
        self.assertEqual(encode("url", wifi), "")

    def test_never_raises_on_junk(self):
        junk = [
            {},
            {"url": ["not", "a", "string"]},
            {"firstName": {"nested": True}, "latitude": object()},
            {"hidden": "perhaps", "security": 7, "startDate": 12},
            {"type": "location", "latitude": None, "longitude": None},
            {"to": "a@b.c", "subject": "\ud800", "message": "x\udfff", "url": "\ud800"},
        ]
        for kind in list(QRCodeType) + ["nope"]:
            for bag in junk:
                self.assertIsInstance(encode(kind, bag), str)

    def test_same_input_same_bytes(self):
        fields = {"eventTitle": "x", "startDate": "2025-06-01T09:00", "endDate": "2025-06-01T10:00"}
        for kind in QRCodeType:
            self.assertEqual(encode(kind, fields), encode(kind, dict(fields)))


if __name__ == "__main__":
    unittest.main()
