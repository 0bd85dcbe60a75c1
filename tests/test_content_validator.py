import unittest

from socialfeed.storage import content_validator


def _buffer_with(offset, signature, size=32):
    data = bytearray(size)
    data[offset:offset + len(signature)] = signature
    return bytes(data)


class TestContentValidator(unittest.TestCase):
    def test_every_signature_validates_for_its_type(self):
        for mime_type, rules in content_validator.FILE_SIGNATURES.items():
            for offset, signature in rules:
                with self.subTest(mime_type=mime_type, offset=offset):
                    data = _buffer_with(offset, signature)
                    self.assertTrue(content_validator.validate(data, mime_type))

    def test_flipping_a_signature_byte_fails_validation(self):
        for mime_type, rules in content_validator.FILE_SIGNATURES.items():
            for offset, signature in rules:
                with self.subTest(mime_type=mime_type, offset=offset):
                    data = bytearray(_buffer_with(offset, signature))
                    data[offset] ^= 0xFF
                    self.assertFalse(content_validator.validate(bytes(data), mime_type))

    def test_png_claim_on_jpeg_bytes(self):
        data = b"\xff\xd8\xff\xe0" + b"\x00" * 12

        self.assertFalse(content_validator.validate(data, "image/png"))
        self.assertEqual(content_validator.detect(data), "image/jpeg")

    def test_short_buffer_does_not_match(self):
        self.assertFalse(content_validator.validate(b"\xff\xd8", "image/jpeg"))
        self.assertFalse(content_validator.validate(b"RIF", "image/webp"))
        self.assertFalse(content_validator.validate(b"RIF", "audio/wav"))
        self.assertIsNone(content_validator.detect(b""))

    def test_unknown_type_is_accepted_with_warning(self):
        with self.assertLogs("socialfeed.storage.content_validator", level="WARNING") as logs:
            self.assertTrue(content_validator.validate(b"anything", "application/pdf"))
        self.assertIn("application/pdf", logs.output[0])
        self.assertFalse(content_validator.is_known_type("application/pdf"))

    def test_detect_uses_table_order_for_riff(self):
        data = b"RIFF\x00\x00\x00\x00WAVEfmt "
        self.assertEqual(content_validator.detect(data), "image/webp")
        self.assertTrue(content_validator.validate(data, "audio/wav"))

    def test_detect_returns_none_for_unknown_bytes(self):
        self.assertIsNone(content_validator.detect(b"plain text, not media"))


if __name__ == "__main__":
    unittest.main()
