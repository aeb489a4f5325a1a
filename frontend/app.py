import asyncio
import streamlit as st
import httpx
from typing import Optional, Tuple, Dict, Any, List

from frontend import api_client as api
from backend.utils.cpf_utils import CPFUtils
from backend.utils.password_utils import PasswordUtils
from backend.utils.schedule import DAYS, TIME_SLOTS

st.set_page_config(page_title="Teachers Timetable", page_icon="🗓️", layout="wide")

CONFLICT_LABELS = {"room": "⚠️ Conflito de sala", "general": "⚠️ Horário simultâneo"}

# -------------- Helpers --------------
def current_auth() -> Optional[Tuple[str, str]]:
    return st.session_state.get("auth")

def logout():
    for key in ("auth", "profile"):
        st.session_state.pop(key, None)

def show_error(data, status: int, prefix: str = "Erro"):
    detail = api.error_detail(data)
    if status == 409:
        st.error(f"Conflito: {detail}")
    elif status in (400, 422):
        st.error(f"Dados inválidos: {detail}")
    elif status == 0:
        st.error(f"Serviço indisponível: {detail}")
    else:
        st.error(f"{prefix} ({status}): {detail}")

def slot_for_cell(slots: List[Dict[str, Any]], day: str, time: str) -> List[Dict[str, Any]]:
    return [s for s in slots if s["day"] == day and s["time"] == time]

# -------------- UI Sections --------------
st.title("🗓️ Teachers Timetable")
st.caption("Gestão de horários semanais de professores")


async def login_ui(client):
    tab_login, tab_register = st.tabs(["Entrar", "Cadastrar"])
    with tab_login:
        with st.form("login_form", clear_on_submit=False):
            cpf = st.text_input("CPF", key="login_cpf")
            pwd = st.text_input("Senha", type="password", key="login_pwd")
            submitted = st.form_submit_button("Entrar")
            if submitted:
                if not CPFUtils.is_valid_cpf(cpf):
                    st.warning("CPF inválido. Verifique se o CPF está correto.")
                elif not pwd:
                    st.warning("Informe a senha.")
                else:
                    cpf_norm = CPFUtils.canonicalize_cpf(cpf)
                    if await api.validate_credentials(client, cpf_norm, pwd):
                        st.session_state["auth"] = (cpf_norm, pwd)
                        st.success("Autenticado com sucesso.")
                        st.rerun()
                    else:
                        st.error("Credenciais inválidas ou serviço indisponível.")

    with tab_register:
        r_name = st.text_input("Nome", key="reg_name")
        r_cpf = st.text_input("CPF", key="reg_cpf")
        if r_cpf and CPFUtils.is_well_formed_cpf(r_cpf) and not CPFUtils.is_valid_cpf(r_cpf):
            st.error("CPF inválido. Verifique se o CPF está correto.")
        r_pwd = st.text_input("Senha", type="password", key="reg_pwd")
        strength = PasswordUtils.password_strength(r_pwd)
        if strength:
            st.caption(strength)
        r_confirm = st.text_input("Confirmar senha", type="password", key="reg_confirm")
        if st.button("Cadastrar", type="primary"):
            if not r_name.strip():
                st.warning("Nome é obrigatório e não pode estar em branco.")
            elif r_pwd != r_confirm:
                st.warning("As senhas não coincidem.")
            else:
                ok, data, status = await api.register(client, r_cpf, r_pwd, r_name)
                if ok:
                    st.success(f"Cadastro realizado para CPF {data.get('cpf_display')}. Faça login.")
                else:
                    show_error(data, status)


async def profile_ui(client, auth, profile: Dict[str, Any]):
    with st.sidebar.expander("Meu perfil"):
        p_name = st.text_input("Nome", value=profile.get("name") or "", key="p_name")
        p_cpf = st.text_input("CPF", value=profile.get("cpf_display") or "", key="p_cpf")
        p_pwd = st.text_input("Nova senha", type="password", key="p_pwd")
        if p_pwd:
            st.caption(PasswordUtils.password_strength(p_pwd))
        p_current = st.text_input("Senha atual", type="password", key="p_current")
        if st.button("Salvar perfil"):
            changes: Dict[str, Any] = {"name": p_name}
            if CPFUtils.canonicalize_cpf(p_cpf) != profile.get("cpf"):
                changes["cpf"] = p_cpf
            if p_pwd:
                changes["password"] = p_pwd
            if p_current:
                changes["current_password"] = p_current
            ok, data, status = await api.update_me(client, auth, changes)
            if ok:
                st.success("Perfil atualizado.")
                # credenciais mudam junto com CPF ou senha
                st.session_state["auth"] = (data["cpf"], p_pwd or auth[1])
                st.rerun()
            else:
                show_error(data, status)


async def my_timetable_ui(client, auth):
    st.subheader("Meu Horário")
    ok, slots, status = await api.list_timetable(client, auth)
    if not ok:
        show_error(slots, status, "Erro ao carregar horários")
        return
    _, subjects, _ = await api.list_registry(client, auth, "subjects")
    _, rooms, _ = await api.list_registry(client, auth, "rooms")
    subject_names = [s["name"] for s in subjects] if isinstance(subjects, list) else []
    room_names = [r["name"] for r in rooms] if isinstance(rooms, list) else []

    grid = {time: {day: "" for day in DAYS} for time in TIME_SLOTS}
    for s in slots:
        grid[s["time"]][s["day"]] = f"{s['subject']} ({s['room']})"
    st.dataframe([{"Horário": t, **grid[t]} for t in TIME_SLOTS], hide_index=True, use_container_width=True)

    c1, c2 = st.columns(2)
    with c1:
        day = st.selectbox("Dia", DAYS, key="my_day")
    with c2:
        time = st.selectbox("Horário", TIME_SLOTS, key="my_time")
    existing = slot_for_cell(slots, day, time)
    if not subject_names or not room_names:
        st.info("Nenhuma disciplina ou sala cadastrada. Procure a coordenação.")
        return
    current = existing[0] if existing else None
    subject = st.selectbox("Disciplina", subject_names, index=subject_names.index(current["subject"]) if current and current["subject"] in subject_names else 0, key="my_subject")
    room = st.selectbox("Sala", room_names, index=room_names.index(current["room"]) if current and current["room"] in room_names else 0, key="my_room")

    b1, b2 = st.columns(2)
    with b1:
        label = "Atualizar" if current else "Adicionar"
        if st.button(label, type="primary"):
            if current:
                ok, data, status = await api.update_slot(client, auth, current["id"], subject, room)
            else:
                ok, data, status = await api.add_slot(client, auth, day, time, subject, room)
            if ok:
                st.rerun()
            show_error(data, status)
    with b2:
        if current and st.button("Excluir horário"):
            ok, data, status = await api.delete_slot(client, auth, current["id"])
            if ok:
                st.rerun()
            show_error(data, status)


async def registry_ui(client, auth, kind: str, label: str):
    st.subheader(label)
    ok, items, status = await api.list_registry(client, auth, kind)
    col_form, col_list = st.columns([1, 2])
    with col_form:
        name = st.text_input("Nome", key=f"{kind}_name")
        code = st.text_input("Código (opcional)", key=f"{kind}_code")
        if st.button("Salvar", key=f"{kind}_save", type="primary"):
            if not name.strip():
                st.warning("Informe um nome.")
            else:
                cok, data, cstatus = await api.create_registry_item(client, auth, kind, name, code)
                if cok:
                    st.rerun()
                show_error(data, cstatus)
    with col_list:
        if not ok:
            show_error(items, status)
            return
        if not items:
            st.info("Nenhum item cadastrado ainda.")
        for item in items:
            title = f"{item['name']} ({item['code']})" if item.get("code") else item["name"]
            with st.expander(title):
                new_name = st.text_input("Nome", value=item["name"], key=f"{kind}_n_{item['id']}")
                new_code = st.text_input("Código", value=item.get("code") or "", key=f"{kind}_c_{item['id']}")
                e1, e2 = st.columns(2)
                with e1:
                    if st.button("Atualizar", key=f"{kind}_u_{item['id']}"):
                        uok, data, ustatus = await api.update_registry_item(client, auth, kind, item["id"], new_name, new_code)
                        if uok:
                            st.rerun()
                        show_error(data, ustatus)
                with e2:
                    if st.button("Excluir", key=f"{kind}_d_{item['id']}"):
                        dok, data, dstatus = await api.delete_registry_item(client, auth, kind, item["id"])
                        if dok:
                            st.rerun()
                        show_error(data, dstatus)


async def all_timetables_ui(client, auth):
    st.subheader("Horários dos Professores")
    ok, teachers, status = await api.list_teachers(client, auth)
    if not ok:
        show_error(teachers, status)
        return
    names = {t["id"]: t.get("name") or t["cpf_display"] for t in teachers}
    options = ["all"] + list(names.keys())
    selected = st.selectbox("Professor", options, format_func=lambda v: "Todos" if v == "all" else names.get(v, "Desconhecido"))

    ok, slots, status = await api.list_timetable(client, auth, selected)
    if not ok:
        show_error(slots, status)
        return
    _, conflicts, _ = await api.conflict_grid(client, auth, selected)
    marks = {(c["day"], c["time"]): c["kind"] for c in conflicts} if isinstance(conflicts, list) else {}

    rows = []
    for time in TIME_SLOTS:
        row = {"Horário": time}
        for day in DAYS:
            cell = [f"{s['subject']} / {s['room']} / {names.get(s['teacher_id'], 'Desconhecido')}" for s in slot_for_cell(slots, day, time)]
            text = "\n".join(cell) or "-"
            if (day, time) in marks:
                text = f"{CONFLICT_LABELS[marks[(day, time)]]}\n{text}"
            row[day] = text
        rows.append(row)
    st.dataframe(rows, hide_index=True, use_container_width=True)
    if marks:
        st.warning(f"{len(marks)} célula(s) com conflito.")


async def main_ui():
    async with httpx.AsyncClient() as client:
        # Gating de autenticação
        if current_auth() is None:
            await login_ui(client)
            st.stop()

        auth = current_auth()
        ok, profile, status = await api.get_me(client, auth)
        if not ok:
            logout()
            st.error("Sessão expirada. Faça login novamente.")
            st.stop()

        st.sidebar.markdown(f"**{profile.get('name')}**  \nCPF: {profile.get('cpf_display')}")
        st.sidebar.button("Sair", on_click=logout)
        hok, health, _ = await api.check_health(client)
        st.sidebar.caption(f"API: {'ok' if hok else 'indisponível'} | Banco: {'ok' if hok and health.get('database') else 'indisponível'}")
        await profile_ui(client, auth, profile)

        if profile.get("profile") == "coordinator":
            tabs = st.tabs(["Disciplinas", "Salas", "Horários", "Meu Horário"])
            with tabs[0]:
                await registry_ui(client, auth, "subjects", "Disciplinas")
            with tabs[1]:
                await registry_ui(client, auth, "rooms", "Salas")
            with tabs[2]:
                await all_timetables_ui(client, auth)
            with tabs[3]:
                await my_timetable_ui(client, auth)
        else:
            await my_timetable_ui(client, auth)

asyncio.run(main_ui())
