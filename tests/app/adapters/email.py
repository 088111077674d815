"""이메일 발송 어댑터. 테스트에서는 보낸 메일을 `sent` 에 쌓기만 합니다."""


class FakeOutbox:
    def __init__(self):
        self.sent = list[tuple[str, str]]()

    def send(self, to: str, body: str):
        self.sent.append((to, body))
