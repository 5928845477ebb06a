import socket
import threading

import pytest
import zmq


class UdpEcho:
    """ A UDP responder that echoes every datagram back to its source,
        unless told to stay silent.
    """

    def __init__(self, host='127.0.0.1', port=0):

        self.socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.socket.bind((host, port))
        self.socket.settimeout(0.05)

        self.address = self.socket.getsockname()
        self.target = '%s:%d' % self.address
        self.received = list()
        self.responsive = True
        self.shutdown = False

        self.thread = threading.Thread(target=self.run, daemon=True)
        self.thread.start()


    def run(self):

        while self.shutdown == False:
            try:
                data, address = self.socket.recvfrom(65535)
            except socket.timeout:
                continue
            except OSError:
                break

            self.received.append(data)

            if self.responsive:
                self.socket.sendto(data, address)


    def stop(self):
        self.shutdown = True
        self.thread.join(1)
        self.socket.close()



class ZmqEcho:
    """ A ZeroMQ ROUTER that returns every request to its sender.
    """

    def __init__(self):

        self.context = zmq.Context.instance()
        self.socket = self.context.socket(zmq.ROUTER)
        self.socket.setsockopt(zmq.LINGER, 0)
        port = self.socket.bind_to_random_port('tcp://127.0.0.1')

        self.target = '127.0.0.1:%d' % (port)
        self.responsive = True
        self.shutdown = False

        self.thread = threading.Thread(target=self.run, daemon=True)
        self.thread.start()


    def run(self):

        poller = zmq.Poller()
        poller.register(self.socket, zmq.POLLIN)

        while self.shutdown == False:
            for active, _flag in poller.poll(50):
                parts = self.socket.recv_multipart()
                if self.responsive:
                    self.socket.send_multipart(parts)

        self.socket.close(linger=0)


    def stop(self):
        self.shutdown = True
        self.thread.join(1)



@pytest.fixture
def udp_echo():
    echo = UdpEcho()
    yield echo
    echo.stop()


@pytest.fixture
def udp_echo_4444():
    echo = UdpEcho(port=4444)
    yield echo
    echo.stop()


@pytest.fixture
def zmq_echo():
    echo = ZmqEcho()
    yield echo
    echo.stop()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
