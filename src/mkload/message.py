""" A class representation of a load-test message, and the helpers used by
    senders to put a message payload on the wire and interpret the reply.
"""


default_encoding = 'utf-8'


class Message:
    """ The :class:`Message` is a very thin encapsulation of one unit of
        work handed to a sender: an opaque *payload*, which may be text,
        bytes, or None, and an unordered dictionary of string *headers*.

        Messages belong to the caller. Senders read them but never modify
        a :class:`Message` they did not create; the same instance may be
        handed to many senders over the course of a run.

        :ivar payload: The text or binary content of the message, if any.
        :ivar headers: A dictionary of string header names to string values.
    """

    def __init__(self, payload=None, headers=None):

        if headers is None:
            headers = dict()

        self.payload = payload
        self.headers = headers


    def __repr__(self):
        return 'Message(payload=%r, headers=%r)' % (self.payload, self.headers)


    def __eq__(self, other):

        if isinstance(other, Message):
            return self.payload == other.payload and self.headers == other.headers

        return NotImplemented


    def is_text(self):
        """ Return True if the payload is a string. A reply to a text
            message is decoded back into text; a reply to anything else
            is left as bytes.
        """

        return isinstance(self.payload, str)


    def encode(self, encoding=default_encoding):
        """ Return the payload as bytes, ready to be written to a socket.
            An absent or empty payload is the empty byte string.
        """

        payload = self.payload

        if payload is None or payload == '':
            return b''

        if isinstance(payload, str):
            return payload.encode(encoding)

        try:
            return memoryview(payload).tobytes()
        except TypeError:
            # Not bytes-like.
            pass

        try:
            return payload.encode(encoding)
        except AttributeError:
            return str(payload).encode(encoding)


# end of class Message



def encode(message, encoding=default_encoding):
    """ Return the wire representation of *message*. A None message is
        legal, and is sent as an empty payload.
    """

    if message is None:
        return b''

    return message.encode(encoding)



def decode(data, message, encoding=default_encoding):
    """ Interpret the reply *data* received in response to *message*. An
        empty reply carries no payload, and is returned as None. Replies
        to text messages are decoded to text; undecodable bytes are
        replaced rather than discarding the whole reply.
    """

    if not data:
        return None

    if message is not None and message.is_text():
        return bytes(data).decode(encoding, errors='replace')

    return bytes(data)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
