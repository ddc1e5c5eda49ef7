# scripts/create_admin.py

"""
첫 관리자(ADMIN) 계정을 생성하는 CLI 스크립트입니다.

실행: python -m scripts.create_admin --email admin@example.com
"""

import asyncio

import typer

from app.core.database import get_async_session_context
from app.core.exceptions import ConflictError
from app.domains.usr import crud as usr_crud
from app.domains.usr import schemas as usr_schemas
from app.domains.usr.models import UserRole

cli = typer.Typer()


async def create_admin_user(employee_in: usr_schemas.EmployeeCreate) -> None:
    """
    데이터베이스에 관리자 계정과 직원 프로필을 생성하는 비동기 함수
    """
    async with get_async_session_context() as db:
        try:
            employee = await usr_crud.employee.create(db, obj_in=employee_in)
        except ConflictError:
            typer.echo(f"오류: 이미 존재하는 이메일입니다: {employee_in.email}", err=True)
            raise typer.Exit(code=1)
    typer.echo(f"관리자 계정이 성공적으로 생성되었습니다: {employee.account.email} ({employee.account_id})")


@cli.command()
def main(
    email: str = typer.Option(
        ..., '--email', '-e',
        prompt="관리자 이메일을 입력하세요",
        help="생성할 관리자 계정의 이메일 주소입니다. (로그인 ID)"
    ),
    password: str = typer.Option(
        ..., '--password', '-p',
        prompt="관리자 비밀번호를 입력하세요",
        hide_input=True,
        confirmation_prompt=True,
        help="생성할 관리자 계정의 비밀번호입니다. (최소 8자 이상)"
    ),
    first_name: str = typer.Option(
        "Admin", '--first-name',
        help="관리자의 이름입니다."
    ),
    last_name: str = typer.Option(
        "User", '--last-name',
        help="관리자의 성입니다."
    ),
):
    """
    AutoCare 스케줄링 애플리케이션을 위한 새로운 관리자(ADMIN)를 생성합니다.
    """
    if len(password) < 8:
        typer.echo("오류: 비밀번호는 최소 8자 이상이어야 합니다.", err=True)
        raise typer.Abort()

    typer.echo("관리자 계정 생성을 시작합니다...")
    employee_in = usr_schemas.EmployeeCreate(
        email=email,
        password=password,
        first_name=first_name,
        last_name=last_name,
        role=UserRole.ADMIN,
    )
    asyncio.run(create_admin_user(employee_in))


if __name__ == "__main__":
    cli()
