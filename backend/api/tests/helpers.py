import httpx

PASSWORD = "Senha@123"
COORDINATOR_CPF = "52998224725"
TEACHER_A_CPF = "09702414458"
TEACHER_B_CPF = "11144477735"


class RecordingPublisher:
    def __init__(self):
        self.events = []

    async def publish(self, action, slot):
        self.events.append({"action": action, "slot_id": slot["id"], "day": slot["day"], "time": slot["time"]})


def api_client() -> httpx.AsyncClient:
    from backend.api.app import app
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")


async def register(client, cpf, name, password=PASSWORD):
    response = await client.post("/api/v1/users", json={"cpf": cpf, "password": password, "name": name})
    assert response.status_code == 201, response.text
    return response.json()


def auth(cpf, password=PASSWORD):
    return (cpf, password)
