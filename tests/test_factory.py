import pytest
import mkload

from mkload.sender import SenderState


def test_registered_types():

    types = mkload.sender.registered()

    for expected in ('datagram', 'udp', 'dummy', 'zmq'):
        assert expected in types


def test_summon_registered():

    sender = mkload.summon('datagram', {'target': '127.0.0.1:4444', 'waitResponse': 'false'})

    assert isinstance(sender, mkload.sender.datagram.DatagramSender)
    assert sender.state is SenderState.UNINITIALIZED
    assert sender.config.wait_response == False
    assert sender.target.host == '127.0.0.1'
    assert sender.target.port == 4444


def test_summon_by_import_path():

    dotted = mkload.summon('mkload.sender.dummy.DummySender', {'target': 'localhost:1'})
    assert isinstance(dotted, mkload.sender.dummy.DummySender)

    colon = mkload.summon('mkload.sender.dummy:DummySender', {'target': 'localhost:1'})
    assert isinstance(colon, mkload.sender.dummy.DummySender)


def test_summon_keyword_options():

    sender = mkload.summon('dummy', target='localhost:1', delay='0.5')
    assert sender.config.delay == 0.5


def test_unresolvable_type():
    """ A scenario naming a sender that does not exist must fail before
        any worker starts.
    """

    options = {'target': '127.0.0.1:4444'}

    with pytest.raises(mkload.ConfigurationError):
        mkload.summon('does.not.Exist', options)

    with pytest.raises(mkload.ConfigurationError):
        mkload.summon('nonesuch', options)

    with pytest.raises(mkload.ConfigurationError):
        mkload.summon('mkload.sender.dummy.NoSuchSender', options)


def test_not_a_sender():

    options = {'target': '127.0.0.1:4444'}

    with pytest.raises(mkload.ConfigurationError):
        mkload.summon('mkload.message.Message', options)

    with pytest.raises(mkload.ConfigurationError):
        mkload.summon('mkload.sender.base.Sender', options)


def test_missing_target():

    with pytest.raises(mkload.ConfigurationError) as caught:
        mkload.summon('datagram', {'waitResponse': 'true'})

    assert 'target' in str(caught.value)


def test_invalid_options():

    bad = (
        {'target': 'no port here'},
        {'target': '127.0.0.1:notaport'},
        {'target': '127.0.0.1:70000'},
        {'target': 'tcp://127.0.0.1:4444'},         # Wrong scheme for UDP.
        {'target': '127.0.0.1:4444', 'waitResponse': 'perhaps'},
        {'target': '127.0.0.1:4444', 'timeout': '-1'},
        {'target': '127.0.0.1:4444', 'timeout': 'inf'},
        {'target': '127.0.0.1:4444', 'timeout': 'nan'},
        {'target': '127.0.0.1:4444', 'timeout': '1e10'},
        {'target': '127.0.0.1:4444', 'encoding': 'klingon'},
        {'target': '127.0.0.1:4444', 'noSuchOption': 'x'},
    )

    for options in bad:
        with pytest.raises(mkload.ConfigurationError):
            mkload.summon('datagram', options)


def test_broken_module(tmp_path, monkeypatch):
    """ A sender module that fails at import time for any reason is a
        configuration problem, not a crash.
    """

    module = tmp_path / 'broken_sender.py'
    module.write_text("raise RuntimeError('half-written plugin')\n")
    monkeypatch.syspath_prepend(str(tmp_path))

    with pytest.raises(mkload.ConfigurationError) as caught:
        mkload.summon('broken_sender.Sender', {'target': 'localhost:1'})

    assert isinstance(caught.value.__cause__, RuntimeError)


def test_register():

    class Custom(mkload.sender.dummy.DummySender):
        pass

    mkload.register('custom', Custom)

    try:
        sender = mkload.summon('custom', {'target': 'localhost:1'})
        assert isinstance(sender, Custom)

        # A second registration under the same name needs to be explicit.

        with pytest.raises(mkload.ConfigurationError):
            mkload.register('custom', mkload.sender.dummy.DummySender)

        mkload.register('custom', mkload.sender.dummy.DummySender, replace=True)
        assert mkload.sender.resolve('custom') is mkload.sender.dummy.DummySender
    finally:
        mkload.sender.unregister('custom')

    assert 'custom' not in mkload.sender.registered()

    with pytest.raises(mkload.ConfigurationError):
        mkload.register('bogus', dict)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
