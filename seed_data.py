"""
Seed data for testing Entregas ZAP
Creates a super-admin, two buildings with managers, staff, residents and
a few deliveries
"""
import asyncio
from datetime import datetime, timedelta

from dotenv import load_dotenv
load_dotenv()

from sqlmodel.ext.asyncio.session import AsyncSession

from entregas_zap.domain.models import (
    Condominio,
    Entrega,
    Funcionario,
    Morador,
    SuperAdministrador,
)
from entregas_zap.domain.models.entrega import STATUS_PENDENTE, STATUS_RETIRADA
from entregas_zap.infrastructure.database import get_engine, init_db


async def seed_database():
    """Seed the database with test data"""
    print("🌱 Starting database seeding...")

    await init_db()
    print("✅ Database initialized")

    engine = get_engine()
    async with AsyncSession(engine) as session:

        # 1. Super admin
        print("\n👨‍💼 Creating super admin...")
        admin = SuperAdministrador(cpf="00000000000", nome="Administrador Geral", senha="admin123")
        session.add(admin)

        # 2. Buildings (with their síndico credentials)
        print("\n🏢 Creating buildings...")
        gran = Condominio(
            nome="Edifício Gran",
            endereco="Rua das Flores, 100",
            cidade="São Paulo",
            estado="SP",
            cep="01000-000",
            sindico_nome="Carla Mendes",
            sindico_cpf="11111111111",
            sindico_senha="sindico123",
            sindico_telefone="(11) 98888-0000",
        )
        teste = Condominio(
            nome="Residencial Teste",
            endereco="Av. Brasil, 2000",
            cidade="Campinas",
            estado="SP",
            webhook_url=None,  # Uses the default webhook
            sindico_nome="Roberto Lima",
            sindico_cpf="22222222222",
            sindico_senha="sindico123",
        )
        session.add(gran)
        session.add(teste)
        await session.commit()
        await session.refresh(gran)
        await session.refresh(teste)
        print(f"   ✅ {gran.nome} (ID: {gran.id})")
        print(f"   ✅ {teste.nome} (ID: {teste.id})")

        # 3. Staff
        print("\n👷 Creating staff...")
        porteiro = Funcionario(
            condominio_id=gran.id,
            cpf="33333333333",
            nome="José Porteiro",
            senha="123456",
            cargo="Porteiro",
        )
        zelador = Funcionario(
            condominio_id=teste.id,
            cpf="44444444444",
            nome="Ana Zeladora",
            senha="123456",
            cargo="Zelador",
        )
        session.add(porteiro)
        session.add(zelador)

        # 4. Residents
        print("\n👥 Creating residents...")
        residents_data = [
            (gran, "João Silva", "101", "A", "(11) 99999-1111"),
            (gran, "Maria Santos", "102", "A", "(11) 99999-2222"),
            (gran, "Lucas Santos", "102", "A", "(11) 99999-2223"),
            (teste, "Pedro Oliveira", "201", "B", "(11) 99999-3333"),
        ]
        residents = []
        for condominio, nome, apartamento, bloco, telefone in residents_data:
            morador = Morador(
                condominio_id=condominio.id,
                nome=nome,
                apartamento=apartamento,
                bloco=bloco,
                telefone=telefone,
            )
            session.add(morador)
            residents.append(morador)

        await session.commit()
        for morador in residents:
            await session.refresh(morador)
        await session.refresh(porteiro)
        print(f"   ✅ Created {len(residents)} residents")

        # 5. Deliveries
        print("\n📦 Creating deliveries...")
        deliveries_data = [
            {
                "morador": residents[0],
                "codigo_retirada": "48213",
                "status": STATUS_PENDENTE,
                "data_entrega": datetime.utcnow() - timedelta(days=4),
            },
            {
                "morador": residents[1],
                "codigo_retirada": "90517",
                "status": STATUS_PENDENTE,
                "data_entrega": datetime.utcnow() - timedelta(hours=3),
            },
            {
                "morador": residents[1],
                "codigo_retirada": "11842",
                "status": STATUS_RETIRADA,
                "data_entrega": datetime.utcnow() - timedelta(days=2),
                "data_retirada": datetime.utcnow() - timedelta(days=1),
                "descricao_retirada": "O proprio(a)",
            },
        ]

        for data in deliveries_data:
            morador = data.pop("morador")
            entrega = Entrega(
                condominio_id=morador.condominio_id,
                morador_id=morador.id,
                funcionario_id=porteiro.id if morador.condominio_id == gran.id else None,
                mensagem_enviada=True,
                **data
            )
            session.add(entrega)

        await session.commit()
        print(f"   ✅ Created {len(deliveries_data)} deliveries")

    print("\n" + "="*60)
    print("✅ Database seeding completed successfully!")
    print("="*60)
    print("\n🔑 Logins (CPF / senha):")
    print("   • Super admin: 00000000000 / admin123")
    print(f"   • Síndico {gran.nome}: 11111111111 / sindico123")
    print(f"   • Síndico {teste.nome}: 22222222222 / sindico123")
    print("   • Porteiro: 33333333333 / 123456")
    print("\n📦 Pending codes: 48213, 90517")
    print("\n💡 Next steps:")
    print("   1. Start the API: python dev_server.py")
    print("   2. POST /api/v1/auth/login and use session_id as X-Session-Id")
    print("   3. Check the backend API: http://localhost:8000/docs")
    print()


async def clear_database():
    """Clear all data from database (DANGER!)"""
    print("⚠️  CLEARING DATABASE...")

    from sqlmodel import SQLModel

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)

    print("✅ Database cleared and recreated")


if __name__ == "__main__":
    import sys

    if len(sys.argv) > 1 and sys.argv[1] == "--clear":
        print("⚠️  WARNING: This will delete ALL data!")
        confirm = input("Type 'yes' to confirm: ")
        if confirm.lower() == "yes":
            asyncio.run(clear_database())
            asyncio.run(seed_database())
        else:
            print("Aborted.")
    else:
        asyncio.run(seed_database())
