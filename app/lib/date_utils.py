from datetime import datetime

MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR

NUMBER_CHARS = [chr(i + ord('0')) for i in range(10)] + ['.']
WHITE_SPACE_CHARS = [' ', ',', ';', ':', '\t', '\n', '/']

MULTIPLIERS = {
    'ms': 0.001,
    's': 1,
    'm': MINUTE,
    'h': HOUR,
    'd': DAY,
}


def now_ts() -> float:
    return datetime.now().timestamp()  # don't use utcnow() since timestamp() does this conversion


class TimespanError(ValueError):
    pass


def parse_timespan_to_seconds(span: str, do_float=True):
    """
    Parses strings like "1d 2h", "30s", "500ms" or a bare number of seconds.
    Raises TimespanError if the string is malformed.
    """
    span = str(span).strip()
    if not span:
        return 0

    try:
        return float(span) if do_float else int(span)
    except ValueError:
        pass

    result = 0
    str_for_number = ''
    span = span.lower()
    i = 0
    while i < len(span):
        symbol = span[i]
        if symbol in ('d', 'h', 'm', 's'):
            unit = symbol
            if span[i:i + 2] == 'ms':
                unit = 'ms'
                i += 1
            if not str_for_number:
                raise TimespanError(f'Must be some digits before "{unit}" in "{span}"')
            try:
                number = float(str_for_number) if do_float else int(str_for_number)
            except ValueError:
                raise TimespanError(f'Invalid number: {str_for_number}')
            result += MULTIPLIERS[unit] * number
            str_for_number = ''
        elif symbol in NUMBER_CHARS:
            str_for_number += symbol
        elif symbol in WHITE_SPACE_CHARS:
            pass
        else:
            raise TimespanError(f'Unexpected symbol: {symbol}')
        i += 1

    if str_for_number:
        # trailing bare number means seconds
        result += float(str_for_number) if do_float else int(str_for_number)

    return result
