import base64
import hashlib
import hmac
from unittest import mock

import requests
from django.test import SimpleTestCase

from repairs import line
from repairs.models import RepairRequest


def ok_response(status=200):
    return mock.Mock(ok=200 <= status < 300, status_code=status, text="")


class SignatureTest(SimpleTestCase):
    body = b'{"events":[]}'

    def test_matches_line_algorithm(self):
        expected = base64.b64encode(hmac.new(b"secret", self.body, hashlib.sha256).digest()).decode()
        self.assertEqual(line.compute_signature(self.body, "secret"), expected)
        self.assertTrue(line.verify_signature(self.body, expected, "secret"))

    def test_rejects_bad_signature(self):
        good = line.compute_signature(self.body, "secret")
        self.assertFalse(line.verify_signature(self.body + b" ", good, "secret"))
        self.assertFalse(line.verify_signature(self.body, good, "other"))
        self.assertFalse(line.verify_signature(self.body, "", "secret"))
        self.assertFalse(line.verify_signature(self.body, good, ""))


class LineClientTest(SimpleTestCase):
    def setUp(self):
        self.client_ = line.LineClient("token-123", timeout=5)

    @mock.patch("repairs.line.requests.post")
    def test_push(self, post):
        post.return_value = ok_response()

        self.assertTrue(self.client_.push_text("U1", "hello"))

        post.assert_called_once_with(
            "https://api.line.me/v2/bot/message/push",
            headers={"Authorization": "Bearer token-123", "Content-Type": "application/json"},
            json={"to": "U1", "messages": [{"type": "text", "text": "hello"}]},
            timeout=5,
        )

    @mock.patch("repairs.line.requests.post")
    def test_reply(self, post):
        post.return_value = ok_response()

        self.assertTrue(self.client_.reply_text("rt-1", "ok"))

        url = post.call_args.args[0]
        self.assertEqual(url, "https://api.line.me/v2/bot/message/reply")
        self.assertEqual(post.call_args.kwargs["json"]["replyToken"], "rt-1")

    @mock.patch("repairs.line.requests.post")
    def test_reply_without_token_is_skipped(self, post):
        self.assertFalse(self.client_.reply_text("", "ok"))
        post.assert_not_called()

    @mock.patch("repairs.line.requests.post")
    def test_http_error_is_reported_not_raised(self, post):
        post.return_value = ok_response(400)
        self.assertFalse(self.client_.push_text("U1", "hello"))

    @mock.patch("repairs.line.requests.post", side_effect=requests.exceptions.ConnectTimeout("slow"))
    def test_network_error_is_reported_not_raised(self, post):
        self.assertFalse(self.client_.push_text("U1", "hello"))

    @mock.patch("repairs.line.requests.post")
    def test_missing_token(self, post):
        self.assertFalse(line.LineClient("").push_text("U1", "hello"))
        post.assert_not_called()

    @mock.patch("repairs.line.requests.post")
    def test_notify(self, post):
        post.return_value = ok_response()
        self.assertTrue(line.send_notify("notify-token", "summary"))
        self.assertEqual(post.call_args.args[0], line.LINE_NOTIFY_URL)
        self.assertEqual(post.call_args.kwargs["data"], {"message": "summary"})


class FlexMessageTest(SimpleTestCase):
    def make_repair(self, **overrides):
        fields = {
            "job_id": "0b5c5a9e-1111-4222-8333-944455556666",
            "full_name": "สมชาย ใจดี", "dept_name": "อายุรกรรม",
            "dept_building": "อาคาร 1", "dept_floor": "3",
            "device": "คอมพิวเตอร์", "device_id": "NRH-PC-0142",
            "issue": "เปิดไม่ติด", "phone": "1234", "notes": "",
        }
        fields.update(overrides)
        return RepairRequest(**fields)

    def test_buttons_carry_job_id(self):
        repair = self.make_repair()
        message = line.build_repair_flex(repair, "https://repair.example.org/")

        self.assertEqual(message["type"], "flex")
        buttons = message["contents"]["footer"]["contents"]
        self.assertEqual(buttons[0]["action"]["data"], f"approve_job:{repair.job_id}")
        self.assertEqual(buttons[1]["action"]["data"], f"reject_job:{repair.job_id}")
        self.assertEqual(
            buttons[2]["action"]["uri"],
            f"https://repair.example.org/status/?jobId={repair.job_id}",
        )

    def test_long_issue_is_truncated(self):
        repair = self.make_repair(issue="ก" * 400)
        message = line.build_repair_flex(repair, "https://repair.example.org")

        issue_box = message["contents"]["body"]["contents"][4]
        text = issue_box["contents"][1]["text"]
        self.assertEqual(len(text), 300)
        self.assertTrue(text.endswith("..."))

    def test_empty_notes_placeholder(self):
        message = line.build_repair_flex(self.make_repair(), "https://repair.example.org")
        notes_box = message["contents"]["body"]["contents"][5]
        self.assertEqual(notes_box["contents"][1]["text"], "(ไม่มี)")

    def test_summary_text(self):
        text = line.repair_summary_text(self.make_repair())
        self.assertIn("NRH-PC-0142", text)
        self.assertIn("อาคาร 1 ชั้น 3", text)


class WebhookSiteTest(SimpleTestCase):
    def test_token_from_url(self):
        self.assertEqual(line.webhook_site_token("https://webhook.site/abc-123"), "abc-123")
        self.assertEqual(line.webhook_site_token("https://webhook.site/abc-123/"), "abc-123")
        self.assertEqual(line.webhook_site_token(""), "")
