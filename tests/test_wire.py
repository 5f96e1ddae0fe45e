import unittest

from deploy_bootstrap.ssh.errors import InvalidContainerFormatError, UnexpectedEndOfDataError
from deploy_bootstrap.ssh.wire import (
    WireReader,
    int_to_bytes,
    write_bytes,
    write_mpint,
    write_mpint_int,
    write_string,
    write_uint32,
)


class WireWriterTests(unittest.TestCase):
    def test_uint32_is_big_endian(self) -> None:
        self.assertEqual(write_uint32(0x01020304), b"\x01\x02\x03\x04")

    def test_string_is_length_prefixed_ascii(self) -> None:
        self.assertEqual(write_string("ssh-rsa"), b"\x00\x00\x00\x07ssh-rsa")
        self.assertEqual(write_bytes(b""), b"\x00\x00\x00\x00")

    def test_mpint_empty_writes_zero_length(self) -> None:
        self.assertEqual(write_mpint(b""), b"\x00\x00\x00\x00")
        self.assertEqual(write_mpint_int(0), b"\x00\x00\x00\x00")

    def test_mpint_prepends_zero_when_high_bit_set(self) -> None:
        self.assertEqual(write_mpint(b"\x80"), b"\x00\x00\x00\x02\x00\x80")
        self.assertEqual(write_mpint(b"\xff\x01"), b"\x00\x00\x00\x03\x00\xff\x01")

    def test_mpint_without_high_bit_is_unchanged(self) -> None:
        self.assertEqual(write_mpint(b"\x7f"), b"\x00\x00\x00\x01\x7f")

    def test_mpint_keeps_caller_leading_zeros(self) -> None:
        self.assertEqual(write_mpint(b"\x00\x01"), b"\x00\x00\x00\x02\x00\x01")

    def test_int_to_bytes_rejects_negative(self) -> None:
        with self.assertRaises(ValueError):
            int_to_bytes(-1)


class WireReaderTests(unittest.TestCase):
    def test_mpint_round_trip(self) -> None:
        values = [0, 1, 0x7F, 0x80, 0xFF, 0x100, 0x7FFF, 0x8000, 0xFFFF, 2**63, 2**64 - 1, 2**64, 3**200]
        for value in values:
            with self.subTest(value=value):
                reader = WireReader(write_mpint_int(value))
                self.assertEqual(reader.read_mpint(), value)
                self.assertEqual(reader.remaining, 0)

    def test_reads_advance_offset(self) -> None:
        reader = WireReader(write_uint32(7) + write_string("none") + b"\xaa")
        self.assertEqual(reader.read_uint32(), 7)
        self.assertEqual(reader.read_string(), "none")
        self.assertEqual(reader.offset, 12)
        self.assertEqual(reader.read_bytes(1), b"\xaa")

    def test_short_uint32_raises(self) -> None:
        with self.assertRaises(UnexpectedEndOfDataError) as ctx:
            WireReader(b"\x00\x01").read_uint32()
        self.assertEqual(ctx.exception.needed, 4)
        self.assertEqual(ctx.exception.available, 2)

    def test_length_overrun_is_a_container_format_error(self) -> None:
        reader = WireReader(write_uint32(10) + b"abc")
        with self.assertRaises(InvalidContainerFormatError):
            reader.read_string_bytes()


if __name__ == "__main__":
    unittest.main()
